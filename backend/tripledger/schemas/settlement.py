"""
Pydantic schemas for Settlement results.
"""
from pydantic import BaseModel
from typing import List
from tripledger.schemas.debt import DebtCalculationOutput


class SettlementSummary(DebtCalculationOutput):
    """Schema for settlement summary."""
    total_expenses: float  # Sum of everything paid, in the trip currency
    participant_count: int
    summary: str


class MemberTotals(BaseModel):
    """Schema for a member's paid/owed breakdown."""
    user_id: str
    total_paid: float
    total_owed: float
    net_balance: float
