"""
Tests for split resolution and expense building.
"""
import pytest
from pydantic import TypeAdapter
from tripledger.core.exceptions import ExpenseValidationError, InvalidSplitError
from tripledger.schemas.debt import ExpensePayer
from tripledger.schemas.split import EqualSplit, FixedSplit, PercentageSplit, SplitMethod
from tripledger.services.debt_calculator import calculate_trip_debts
from tripledger.services.split_service import (
    build_expense,
    resolve_split,
    split_cents_by_percents,
    split_cents_equally,
)


def owed(shares):
    return {s.user_id: s.amount_owed for s in shares}


def test_equal_split_distributes_remainder_in_order():
    """Test 100.00 split three ways."""
    assert split_cents_equally(10000, ["A", "B", "C"]) == [("A", 3334), ("B", 3333), ("C", 3333)]


def test_equal_split_requires_users():
    """Test that an empty equal split is rejected."""
    with pytest.raises(InvalidSplitError) as exc_info:
        split_cents_equally(100, [])

    assert exc_info.value.method == "equal"


def test_percent_split_largest_remainder():
    """Test that leftover cents go to the largest fractional parts."""
    result = split_cents_by_percents(10, {"A": 12.5, "B": 12.5, "C": 75})

    assert result == [("A", 1), ("B", 1), ("C", 8)]


def test_percent_split_ties_follow_input_order():
    """Test that equal fractions are served in input order."""
    assert split_cents_by_percents(1, {"A": 50, "B": 50}) == [("A", 1), ("B", 0)]


def test_percent_split_drops_zero_entries():
    """Test that users with 0% get no share."""
    assert split_cents_by_percents(1000, {"A": 100, "B": 0}) == [("A", 1000)]


@pytest.mark.parametrize("percents", [
    {"A": 50, "B": 40},
    {"A": 0, "B": 0},
    {},
])
def test_percent_split_must_total_100(percents):
    """Test rejected percentage configurations."""
    with pytest.raises(InvalidSplitError):
        split_cents_by_percents(1000, percents)


def test_resolve_equal_split():
    """Test resolving an equal split into shares."""
    shares = resolve_split(100.00, EqualSplit(user_ids=["A", "B", "C"]))

    assert owed(shares) == {"A": 33.34, "B": 33.33, "C": 33.33}


def test_resolve_fixed_split():
    """Test that fixed amounts pass through when they add up."""
    shares = resolve_split(50.00, FixedSplit(amounts={"A": 20.00, "B": 30.00}))

    assert owed(shares) == {"A": 20.0, "B": 30.0}


@pytest.mark.parametrize("amounts", [
    {"A": 20.00, "B": 20.00},
    {"A": 20.005, "B": 29.995},
    {"A": -10.00, "B": 60.00},
    {},
])
def test_resolve_fixed_split_rejects_bad_amounts(amounts):
    """Test fixed splits that do not add up or are not cent precise."""
    with pytest.raises(InvalidSplitError) as exc_info:
        resolve_split(50.00, FixedSplit(amounts=amounts))

    assert exc_info.value.method == "fixed"


def test_resolve_percentage_split():
    """Test resolving a percentage split into shares."""
    shares = resolve_split(0.10, PercentageSplit(percents={"A": 40, "B": 30, "C": 30}))

    assert owed(shares) == {"A": 0.04, "B": 0.03, "C": 0.03}


def test_split_method_is_a_tagged_union():
    """Test that raw payloads select the variant by `method`."""
    adapter = TypeAdapter(SplitMethod)

    split = adapter.validate_python({"method": "percentage", "percents": {"A": 100}})

    assert isinstance(split, PercentageSplit)
    assert isinstance(adapter.validate_python({"method": "equal", "user_ids": ["A"]}), EqualSplit)


def test_build_expense_with_multiple_payers():
    """Test building a balanced multi-payer expense."""
    payers = [
        ExpensePayer(user_id="A", amount_paid=60.00),
        ExpensePayer(user_id="B", amount_paid=40.00),
    ]

    expense = build_expense("e1", 100.00, payers, EqualSplit(user_ids=["A", "B", "C"]))

    assert expense.id == "e1"
    assert owed(expense.shares) == {"A": 33.34, "B": 33.33, "C": 33.33}
    result = calculate_trip_debts([expense], ["A", "B", "C"])
    assert result.net_balances == {"A": 26.66, "B": 6.67, "C": -33.33}


@pytest.mark.parametrize("total, payers, field", [
    (0, [("A", 1.00)], "total_amount"),
    (10.005, [("A", 10.005)], "total_amount"),
    (10.00, [], "payers"),
    (10.00, [("A", 5.00), ("A", 5.00)], "payers"),
    (10.00, [("A", 0), ("B", 10.00)], "amount_paid"),
    (10.00, [("A", 4.00), ("B", 5.00)], "payers"),
])
def test_build_expense_validation(total, payers, field):
    """Test the expense-creation boundary rules."""
    payer_models = [ExpensePayer(user_id=u, amount_paid=a) for u, a in payers]

    with pytest.raises(ExpenseValidationError) as exc_info:
        build_expense("e1", total, payer_models, EqualSplit(user_ids=["A", "B"]))

    assert exc_info.value.field == field


def test_build_expense_rejects_duplicate_share_users():
    """Test that an equal split naming a user twice is rejected."""
    payers = [ExpensePayer(user_id="A", amount_paid=10.00)]

    with pytest.raises(ExpenseValidationError) as exc_info:
        build_expense("e1", 10.00, payers, EqualSplit(user_ids=["A", "B", "A"]))

    assert exc_info.value.field == "shares"
    assert exc_info.value.user_id == "A"


def test_percent_split_within_tolerance_sums_to_total():
    """Test percentages slightly above 100% still resolve to exactly the total."""
    total_cents = 10**11

    result = split_cents_by_percents(total_cents, {"A": 50.0000005, "B": 50.0000004})

    assert sum(cents for _, cents in result) == total_cents
    assert [user_id for user_id, _ in result] == ["A", "B"]
    assert all(abs(cents - total_cents // 2) <= 100 for _, cents in result)


def test_percent_split_below_100_within_tolerance_sums_to_total():
    """Test percentages slightly below 100% still resolve to exactly the total."""
    result = split_cents_by_percents(10**11, {"A": 49.9999996, "B": 49.9999996, "C": 0.0000001})

    assert sum(cents for _, cents in result) == 10**11


def test_build_expense_rejects_zero_cent_shares():
    """Test that a split leaving someone with 0.00 is rejected at creation."""
    payers = [ExpensePayer(user_id="A", amount_paid=0.02)]

    with pytest.raises(ExpenseValidationError) as exc_info:
        build_expense("e1", 0.02, payers, EqualSplit(user_ids=["A", "B", "C"]))

    assert exc_info.value.field == "amount_owed"
    assert exc_info.value.user_id == "C"
