"""
Debt calculator for simplified trip settlement.

Takes a trip's expense history and member roster and produces each member's
net balance plus a short list of payments that settles every balance
exactly. All arithmetic runs on integer cents.
"""
import logging
import math
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union
from pydantic import ValidationError
from tripledger.core.config import settings
from tripledger.core.exceptions import (
    BalanceInvariantError,
    ExpenseValidationError,
    UnbalancedExpenseError,
)
from tripledger.core.money import from_cents, to_cents
from tripledger.schemas.debt import (
    BalanceEntry,
    DebtCalculationOutput,
    ExpenseInput,
    SettlementTransaction,
)

logger = logging.getLogger(__name__)

ExpenseLike = Union[ExpenseInput, Mapping]
CentsEntry = Tuple[str, int]  # (user_id, cents)


def coerce_expense(expense: ExpenseLike) -> ExpenseInput:
    """Accept an ExpenseInput or a plain mapping and return an ExpenseInput."""
    if isinstance(expense, ExpenseInput):
        return expense
    try:
        return ExpenseInput.model_validate(expense)
    except ValidationError as e:
        expense_id = expense.get("id") if isinstance(expense, Mapping) else None
        raise ExpenseValidationError(
            f"Expense {expense_id} is malformed: {e}",
            expense_id=expense_id
        ) from e


def _amount_to_cents(expense_id: str, field: str, user_id: str, amount: float) -> int:
    """Validate a single payer/share amount and convert it to cents."""
    if not math.isfinite(amount):
        raise ExpenseValidationError(
            f"Expense {expense_id} {field} must be finite (user_id={user_id})",
            expense_id=expense_id,
            field=field,
            user_id=user_id
        )
    if amount < 0:
        raise ExpenseValidationError(
            f"Expense {expense_id} {field} must be >= 0 (user_id={user_id})",
            expense_id=expense_id,
            field=field,
            user_id=user_id
        )
    try:
        return to_cents(amount)
    except ValueError as e:
        raise ExpenseValidationError(
            f"Expense {expense_id} {field} is out of range (user_id={user_id})",
            expense_id=expense_id,
            field=field,
            user_id=user_id
        ) from e


def _check_member(expense_id: str, field: str, user_id: str, member_set: set) -> None:
    if user_id not in member_set:
        raise ExpenseValidationError(
            f"Expense {expense_id} {field} user_id is not a trip member: {user_id}",
            expense_id=expense_id,
            field=field,
            user_id=user_id
        )


def expense_to_cents(
    expense: ExpenseInput,
    member_set: set
) -> Tuple[List[CentsEntry], List[CentsEntry]]:
    """
    Validate one expense and return its payer and share amounts in cents.

    If paid and owed totals differ (independent cent-rounding of shares),
    the whole difference is applied to the largest share, ties going to the
    first one in input order, so every expense balances to the cent.

    Raises:
        ExpenseValidationError: empty payers/shares, unknown members,
            negative or non-finite amounts.
        UnbalancedExpenseError: the correction would make a share negative.
    """
    if not expense.payers:
        raise ExpenseValidationError(
            f"Expense {expense.id} must have at least one payer",
            expense_id=expense.id,
            field="payers"
        )
    if not expense.shares:
        raise ExpenseValidationError(
            f"Expense {expense.id} must have at least one share",
            expense_id=expense.id,
            field="shares"
        )

    paid: List[CentsEntry] = []
    for payer in expense.payers:
        _check_member(expense.id, "payer", payer.user_id, member_set)
        cents = _amount_to_cents(expense.id, "amount_paid", payer.user_id, payer.amount_paid)
        paid.append((payer.user_id, cents))

    owed: List[CentsEntry] = []
    for share in expense.shares:
        _check_member(expense.id, "share", share.user_id, member_set)
        cents = _amount_to_cents(expense.id, "amount_owed", share.user_id, share.amount_owed)
        owed.append((share.user_id, cents))

    total_paid_cents = sum(cents for _, cents in paid)
    total_owed_cents = sum(cents for _, cents in owed)
    diff_cents = total_paid_cents - total_owed_cents

    if diff_cents != 0:
        # max() returns the first maximal element, i.e. ties go to input order
        largest_idx = max(range(len(owed)), key=lambda i: owed[i][1])
        user_id, cents = owed[largest_idx]
        corrected = cents + diff_cents
        if corrected < 0:
            raise UnbalancedExpenseError(
                f"Expense {expense.id} cannot be balanced: paid {from_cents(total_paid_cents)} "
                f"but shares total {from_cents(total_owed_cents)}",
                expense_id=expense.id,
                diff_cents=diff_cents
            )
        if abs(diff_cents) > settings.ROUNDING_TOLERANCE_CENTS:
            logger.warning(
                f"Expense {expense.id} paid/owed mismatch of {diff_cents} cents exceeds "
                f"tolerance; applying it to the share of {user_id}"
            )
        else:
            logger.debug(f"Expense {expense.id}: reconciled {diff_cents} cents onto share of {user_id}")
        owed[largest_idx] = (user_id, corrected)

    return paid, owed


def minimize_transfers(
    debtors: List[CentsEntry],
    creditors: List[CentsEntry]
) -> List[SettlementTransaction]:
    """
    Turn debtor/creditor balances (positive cents) into settlement transfers.

    Greedy min-cash-flow matching: the largest remaining debtor pays the
    largest remaining creditor the smaller of the two amounts, and whichever
    side reaches zero is dropped. Produces at most
    len(debtors) + len(creditors) - 1 transfers. Not always the minimum count.

    Inputs are not modified.
    """
    # sorted() is stable, so equal amounts keep roster order
    debtors = [list(entry) for entry in sorted(debtors, key=lambda x: x[1], reverse=True)]
    creditors = [list(entry) for entry in sorted(creditors, key=lambda x: x[1], reverse=True)]

    transfers = []
    debt_idx = 0
    cred_idx = 0

    while debt_idx < len(debtors) and cred_idx < len(creditors):
        debtor_id, debt_cents = debtors[debt_idx]
        creditor_id, cred_cents = creditors[cred_idx]

        transfer_cents = min(debt_cents, cred_cents)
        if transfer_cents > 0:
            transfers.append(SettlementTransaction(
                payer_id=debtor_id,
                payee_id=creditor_id,
                amount=from_cents(transfer_cents)
            ))

        debtors[debt_idx][1] = debt_cents - transfer_cents
        creditors[cred_idx][1] = cred_cents - transfer_cents

        if debtors[debt_idx][1] == 0:
            debt_idx += 1
        if creditors[cred_idx][1] == 0:
            cred_idx += 1

    remaining_debt = sum(cents for _, cents in debtors[debt_idx:])
    remaining_credit = sum(cents for _, cents in creditors[cred_idx:])
    if remaining_debt != 0 or remaining_credit != 0:
        logger.error(
            f"Unsettled balances after matching: debtors {remaining_debt} cents, "
            f"creditors {remaining_credit} cents"
        )
        raise BalanceInvariantError(
            "Unsettled balances remain after simplification. "
            "Check inputs for rounding or membership issues.",
            remaining_cents=remaining_debt - remaining_credit
        )

    return transfers


def calculate_balance_cents(
    expenses: Iterable[ExpenseLike],
    members: Sequence[str]
) -> Dict[str, int]:
    """
    Accumulate each member's net balance in cents (paid minus owed).

    Every member of the roster gets an entry, zero if untouched.
    """
    roster = list(dict.fromkeys(members))
    member_set = set(roster)
    balance_cents = {member_id: 0 for member_id in roster}

    for raw_expense in expenses:
        expense = coerce_expense(raw_expense)
        paid, owed = expense_to_cents(expense, member_set)
        for user_id, cents in paid:
            balance_cents[user_id] += cents
        for user_id, cents in owed:
            balance_cents[user_id] -= cents

    net_sum_cents = sum(balance_cents.values())
    if net_sum_cents != 0:
        logger.error(f"Net balances sum to {net_sum_cents} cents instead of zero")
        raise BalanceInvariantError(
            f"Net balances do not sum to zero ({from_cents(net_sum_cents)}). "
            "Check that total paid equals total owed across all expenses.",
            remaining_cents=net_sum_cents
        )

    return balance_cents


def calculate_trip_debts(
    expenses: Iterable[ExpenseLike],
    members: Sequence[str]
) -> DebtCalculationOutput:
    """
    Calculate net balances and simplified settlement transactions for a trip.

    Args:
        expenses: Finalized expenses (ExpenseInput or equivalent mappings),
            including recorded settlements.
        members: Trip roster. Order only affects tie-breaking.

    Returns:
        DebtCalculationOutput with:
            - net_balances: user_id -> balance (positive = should receive)
            - creditors / debtors: absolute amounts, zero balances omitted
            - settlements: payer_id (debtor, sends) -> payee_id (creditor,
              receives); executing all of them zeroes every balance

    Pure function: same input, same output, no side effects.
    """
    balance_cents = calculate_balance_cents(expenses, members)

    net_balances: Dict[str, float] = {}
    creditors: List[BalanceEntry] = []
    debtors: List[BalanceEntry] = []
    creditor_cents: List[CentsEntry] = []
    debtor_cents: List[CentsEntry] = []

    for member_id, cents in balance_cents.items():
        net_balances[member_id] = from_cents(cents)
        if cents > 0:
            creditors.append(BalanceEntry(user_id=member_id, amount=from_cents(cents)))
            creditor_cents.append((member_id, cents))
        elif cents < 0:
            debtors.append(BalanceEntry(user_id=member_id, amount=from_cents(-cents)))
            debtor_cents.append((member_id, -cents))

    settlements = minimize_transfers(debtor_cents, creditor_cents)

    return DebtCalculationOutput(
        net_balances=net_balances,
        creditors=creditors,
        debtors=debtors,
        settlements=settlements
    )
