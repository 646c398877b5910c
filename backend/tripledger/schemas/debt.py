"""
Pydantic schemas for debt calculation input and output.
"""
from pydantic import BaseModel
from typing import List, Dict


class ExpensePayer(BaseModel):
    """One person's contribution toward an expense."""
    user_id: str
    amount_paid: float  # In the trip currency


class ExpenseShare(BaseModel):
    """One person's responsibility for part of an expense."""
    user_id: str
    amount_owed: float  # In the trip currency


class ExpenseInput(BaseModel):
    """A finalized expense as handed to the debt engine."""
    id: str
    payers: List[ExpensePayer]
    shares: List[ExpenseShare]


class BalanceEntry(BaseModel):
    """Schema for a creditor or debtor entry."""
    user_id: str
    amount: float  # Absolute value, always >= 0


class SettlementTransaction(BaseModel):
    """
    Instruction for one member to pay another.
    
    payer_id is the debtor who SENDS money, payee_id is the creditor who
    RECEIVES it.
    """
    payer_id: str
    payee_id: str
    amount: float


class DebtCalculationOutput(BaseModel):
    """Result of a debt calculation for one trip."""
    net_balances: Dict[str, float]  # Positive = should receive, negative = owes
    creditors: List[BalanceEntry]
    debtors: List[BalanceEntry]
    settlements: List[SettlementTransaction]
