"""Schemas package - Import all schemas for convenient access."""
from tripledger.schemas.debt import (
    ExpensePayer,
    ExpenseShare,
    ExpenseInput,
    BalanceEntry,
    SettlementTransaction,
    DebtCalculationOutput,
)
from tripledger.schemas.split import EqualSplit, FixedSplit, PercentageSplit, SplitMethod
from tripledger.schemas.settlement import SettlementSummary, MemberTotals

__all__ = [
    "ExpensePayer",
    "ExpenseShare",
    "ExpenseInput",
    "BalanceEntry",
    "SettlementTransaction",
    "DebtCalculationOutput",
    "EqualSplit",
    "FixedSplit",
    "PercentageSplit",
    "SplitMethod",
    "SettlementSummary",
    "MemberTotals",
]
