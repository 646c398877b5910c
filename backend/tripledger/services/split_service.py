"""
Split service for turning an expense total into per-user shares.

Each split method resolves to integer cents that add up exactly to the
expense total, so expenses reach the debt calculator already balanced.
"""
import logging
import math
from typing import Dict, List, Sequence, Tuple
from tripledger.core.exceptions import ExpenseValidationError, InvalidSplitError
from tripledger.core.money import Amount, from_cents, is_cent_precise, to_cents
from tripledger.schemas.debt import ExpenseInput, ExpensePayer, ExpenseShare
from tripledger.schemas.split import EqualSplit, FixedSplit, PercentageSplit, SplitMethod

logger = logging.getLogger(__name__)

PERCENT_TOLERANCE = 1e-6


def split_cents_equally(total_cents: int, user_ids: Sequence[str]) -> List[Tuple[str, int]]:
    """Split cents equally; the first `remainder` users get one extra cent."""
    if not user_ids:
        raise InvalidSplitError("Equal split needs at least one user", method="equal")
    base = total_cents // len(user_ids)
    remainder = total_cents - base * len(user_ids)
    return [
        (user_id, base + (1 if idx < remainder else 0))
        for idx, user_id in enumerate(user_ids)
    ]


def split_cents_by_percents(total_cents: int, percents: Dict[str, float]) -> List[Tuple[str, int]]:
    """
    Split cents by percentage using the largest-remainder method.

    Users with a zero (or negative) percentage are left out. Percentages are
    normalised by their total, each user gets the floor of their exact share,
    then leftover cents go one at a time to the largest fractional parts.
    Result keeps input order and always sums to total_cents.
    """
    items = [
        (user_id, percent) for user_id, percent in percents.items()
        if math.isfinite(percent) and percent > 0
    ]
    total_percent = sum(percent for _, percent in items)
    if not items or abs(total_percent - 100) > PERCENT_TOLERANCE:
        raise InvalidSplitError(
            f"Percent shares must sum to 100% (got {total_percent})",
            method="percentage"
        )

    bases = []
    for user_id, percent in items:
        raw = total_cents * percent / total_percent
        floored = math.floor(raw)
        bases.append([user_id, floored, raw - floored])

    remaining = total_cents - sum(cents for _, cents, _ in bases)
    # Stable sort: equal fractions are served in input order
    by_fraction = sorted(range(len(bases)), key=lambda i: bases[i][2], reverse=True)
    for idx in by_fraction:
        if remaining <= 0:
            break
        bases[idx][1] += 1
        remaining -= 1
    # Float error can push the floors past the total; take back from the smallest fractions
    for idx in reversed(by_fraction):
        if remaining >= 0:
            break
        if bases[idx][1] > 0:
            bases[idx][1] -= 1
            remaining += 1

    if remaining != 0:
        raise InvalidSplitError(
            f"Percent shares could not be resolved to exactly {total_cents} cents",
            method="percentage"
        )

    return [(user_id, cents) for user_id, cents, _ in bases]


def _fixed_cents(total_cents: int, split: FixedSplit) -> List[Tuple[str, int]]:
    if not split.amounts:
        raise InvalidSplitError("Fixed split needs at least one amount", method="fixed")
    result = []
    for user_id, amount in split.amounts.items():
        if not math.isfinite(amount) or amount < 0:
            raise InvalidSplitError(
                f"Fixed amount for {user_id} must be a finite number >= 0",
                method="fixed"
            )
        if not is_cent_precise(amount):
            raise InvalidSplitError(
                f"Fixed amount for {user_id} must have at most 2 decimal places",
                method="fixed"
            )
        result.append((user_id, to_cents(amount)))

    owed_cents = sum(cents for _, cents in result)
    if owed_cents != total_cents:
        raise InvalidSplitError(
            f"Sum of owed amounts ({from_cents(owed_cents)}) must equal total amount "
            f"({from_cents(total_cents)})",
            method="fixed"
        )
    return result


def resolve_split(total_amount: Amount, split: SplitMethod) -> List[ExpenseShare]:
    """Resolve a split method into concrete shares summing to the total."""
    total_cents = to_cents(total_amount)

    if isinstance(split, EqualSplit):
        cents_by_user = split_cents_equally(total_cents, split.user_ids)
    elif isinstance(split, FixedSplit):
        cents_by_user = _fixed_cents(total_cents, split)
    elif isinstance(split, PercentageSplit):
        cents_by_user = split_cents_by_percents(total_cents, split.percents)
    else:
        raise InvalidSplitError(f"Unknown split method: {type(split).__name__}")

    return [
        ExpenseShare(user_id=user_id, amount_owed=from_cents(cents))
        for user_id, cents in cents_by_user
    ]


def _check_unique(user_ids: List[str], expense_id: str, field: str) -> None:
    seen = set()
    for user_id in user_ids:
        if user_id in seen:
            raise ExpenseValidationError(
                f"Expense {expense_id} {field} must not contain duplicate user_id values",
                expense_id=expense_id,
                field=field,
                user_id=user_id
            )
        seen.add(user_id)


def build_expense(
    expense_id: str,
    total_amount: Amount,
    payers: List[ExpensePayer],
    split: SplitMethod
) -> ExpenseInput:
    """
    Build a balanced expense from its total, payers and split method.

    Enforces the expense-creation rules: total > 0, every amount has at most
    2 decimal places, payers are unique with positive amounts, and the
    payers add up exactly to the total. Every resolved share must be at
    least one cent, so an equal split of 0.02 among three users is rejected.
    """
    if not is_cent_precise(total_amount) or to_cents(total_amount) <= 0:
        raise ExpenseValidationError(
            f"Expense {expense_id} total_amount must be > 0 with at most 2 decimal places",
            expense_id=expense_id,
            field="total_amount"
        )
    if not payers:
        raise ExpenseValidationError(
            f"Expense {expense_id} payers must have at least one entry",
            expense_id=expense_id,
            field="payers"
        )
    _check_unique([p.user_id for p in payers], expense_id, "payers")

    for payer in payers:
        if not is_cent_precise(payer.amount_paid) or payer.amount_paid <= 0:
            raise ExpenseValidationError(
                f"Expense {expense_id} amount_paid must be > 0 with at most 2 decimal places "
                f"(user_id={payer.user_id})",
                expense_id=expense_id,
                field="amount_paid",
                user_id=payer.user_id
            )

    total_cents = to_cents(total_amount)
    paid_cents = sum(to_cents(p.amount_paid) for p in payers)
    if paid_cents != total_cents:
        raise ExpenseValidationError(
            f"Expense {expense_id}: sum of payers.amount_paid must equal total_amount",
            expense_id=expense_id,
            field="payers"
        )

    shares = resolve_split(total_amount, split)
    _check_unique([s.user_id for s in shares], expense_id, "shares")
    for share in shares:
        if to_cents(share.amount_owed) <= 0:
            raise ExpenseValidationError(
                f"Expense {expense_id} amount_owed must be > 0 (user_id={share.user_id})",
                expense_id=expense_id,
                field="amount_owed",
                user_id=share.user_id
            )
    logger.debug(f"Built expense {expense_id} with {len(payers)} payer(s) and {len(shares)} share(s)")

    return ExpenseInput(id=expense_id, payers=payers, shares=shares)
