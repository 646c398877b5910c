"""
Exceptions raised by the debt engine and its helpers.

Every error is a deterministic function of the input: the call fails as a
whole, nothing partial is returned and nothing should be retried.
"""
from typing import Optional


class DebtCalculationError(ValueError):
    """Base class for all settlement computation failures."""


class ExpenseValidationError(DebtCalculationError):
    """An expense record violates the input-integrity rules."""
    
    def __init__(
        self,
        message: str,
        expense_id: Optional[str] = None,
        field: Optional[str] = None,
        user_id: Optional[str] = None
    ):
        super().__init__(message)
        self.expense_id = expense_id
        self.field = field
        self.user_id = user_id


class UnbalancedExpenseError(DebtCalculationError):
    """Reconciling an expense's paid and owed totals would make a share negative."""
    
    def __init__(self, message: str, expense_id: str, diff_cents: int):
        super().__init__(message)
        self.expense_id = expense_id
        self.diff_cents = diff_cents


class BalanceInvariantError(DebtCalculationError):
    """Net balances failed to cancel out. Unreachable for reconciled input."""
    
    def __init__(self, message: str, remaining_cents: int):
        super().__init__(message)
        self.remaining_cents = remaining_cents


class InvalidSplitError(DebtCalculationError):
    """A split configuration cannot be turned into per-user amounts."""
    
    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.method = method
