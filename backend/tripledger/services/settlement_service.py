"""
Settlement service for presenting and recording trip settlements.
"""
import logging
import uuid
from typing import Dict, Iterable, List, Optional, Sequence
from tripledger.core.exceptions import ExpenseValidationError
from tripledger.core.money import format_amount, from_cents, to_cents, to_signed_cents
from tripledger.schemas.debt import ExpenseInput, ExpensePayer, ExpenseShare, SettlementTransaction
from tripledger.schemas.settlement import MemberTotals, SettlementSummary
from tripledger.services.debt_calculator import (
    ExpenseLike,
    calculate_trip_debts,
    coerce_expense,
    expense_to_cents,
)

logger = logging.getLogger(__name__)

SETTLEMENT_EXPENSE_PREFIX = "settlement-"


def calculate_settlement(
    expenses: Iterable[ExpenseLike],
    members: Sequence[str],
    currency_symbol: Optional[str] = None
) -> SettlementSummary:
    """
    Calculate settlement for a trip and build a readable summary.
    Returns SettlementSummary with the debt calculation plus totals.
    """
    expenses = [coerce_expense(e) for e in expenses]
    result = calculate_trip_debts(expenses, members)

    total_cents = sum(
        to_cents(payer.amount_paid)
        for expense in expenses
        for payer in expense.payers
    )
    total_expenses = from_cents(total_cents)

    # Create summary text
    summary_lines = []
    summary_lines.append(f"Total expenses: {format_amount(total_expenses, currency_symbol)}")
    summary_lines.append(f"Participants: {len(result.net_balances)}")
    summary_lines.append("\nNet balances:")
    for user_id, balance in result.net_balances.items():
        sign = "+" if balance > 0 else ""
        summary_lines.append(f"  {user_id}: {sign}{format_amount(balance, currency_symbol)}")
    summary_lines.append("\nTransfers:")
    if not result.settlements:
        summary_lines.append("  All settled up")
    for transfer in result.settlements:
        summary_lines.append(
            f"  {transfer.payer_id} -> {transfer.payee_id}: "
            f"{format_amount(transfer.amount, currency_symbol)}"
        )
    summary = "\n".join(summary_lines)

    logger.info(
        f"Settlement calculated: {len(expenses)} expenses, "
        f"{len(result.net_balances)} members, {len(result.settlements)} transfers"
    )

    return SettlementSummary(
        **result.model_dump(),
        total_expenses=total_expenses,
        participant_count=len(result.net_balances),
        summary=summary
    )


def calculate_member_totals(
    expenses: Iterable[ExpenseLike],
    members: Sequence[str]
) -> List[MemberTotals]:
    """
    Break down what each member paid and owes across all expenses.

    Uses the same per-expense validation and rounding reconciliation as the
    debt calculator, so net_balance matches its net balances exactly.
    """
    roster = list(dict.fromkeys(members))
    member_set = set(roster)
    paid_cents = {member_id: 0 for member_id in roster}
    owed_cents = {member_id: 0 for member_id in roster}

    for raw_expense in expenses:
        paid, owed = expense_to_cents(coerce_expense(raw_expense), member_set)
        for user_id, cents in paid:
            paid_cents[user_id] += cents
        for user_id, cents in owed:
            owed_cents[user_id] += cents

    return [
        MemberTotals(
            user_id=member_id,
            total_paid=from_cents(paid_cents[member_id]),
            total_owed=from_cents(owed_cents[member_id]),
            net_balance=from_cents(paid_cents[member_id] - owed_cents[member_id])
        )
        for member_id in roster
    ]


def settlement_to_expense(
    transaction: SettlementTransaction,
    expense_id: Optional[str] = None
) -> ExpenseInput:
    """
    Build the pseudo-expense that records a confirmed settlement payment.

    The sender (payer_id, the debtor) is the only payer and the receiver
    (payee_id, the creditor) holds the only share, so appending it to the
    trip's expenses moves both balances toward zero by `amount`.
    """
    if transaction.payer_id == transaction.payee_id:
        raise ExpenseValidationError(
            f"Settlement payer and payee must differ (user_id={transaction.payer_id})",
            expense_id=expense_id,
            field="payee_id",
            user_id=transaction.payee_id
        )
    if to_cents(transaction.amount) <= 0:
        raise ExpenseValidationError(
            "Settlement amount must be > 0",
            expense_id=expense_id,
            field="amount"
        )

    if expense_id is None:
        expense_id = f"{SETTLEMENT_EXPENSE_PREFIX}{uuid.uuid4()}"
    amount = from_cents(to_cents(transaction.amount))

    return ExpenseInput(
        id=expense_id,
        payers=[ExpensePayer(user_id=transaction.payer_id, amount_paid=amount)],
        shares=[ExpenseShare(user_id=transaction.payee_id, amount_owed=amount)]
    )


def apply_settlements(
    net_balances: Dict[str, float],
    settlements: Iterable[SettlementTransaction]
) -> Dict[str, float]:
    """
    Replay settlement transactions against net balances.

    The payer (debtor) gains `amount`, the payee (creditor) loses it. Running
    the full output of calculate_trip_debts leaves every balance at zero.
    Does NOT modify the input.
    """
    balance_cents = {user_id: to_signed_cents(balance) for user_id, balance in net_balances.items()}
    for transaction in settlements:
        cents = to_cents(transaction.amount)
        balance_cents[transaction.payer_id] = balance_cents.get(transaction.payer_id, 0) + cents
        balance_cents[transaction.payee_id] = balance_cents.get(transaction.payee_id, 0) - cents
    return {user_id: from_cents(cents) for user_id, cents in balance_cents.items()}
