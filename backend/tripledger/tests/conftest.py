"""
Shared fixtures for debt calculation tests.
"""
import random
import pytest
from tripledger.schemas.debt import ExpenseInput, ExpensePayer, ExpenseShare


def build_expense(expense_id: str, payers: dict, shares: dict) -> ExpenseInput:
    """Build an ExpenseInput from {user_id: amount} mappings."""
    return ExpenseInput(
        id=expense_id,
        payers=[ExpensePayer(user_id=u, amount_paid=a) for u, a in payers.items()],
        shares=[ExpenseShare(user_id=u, amount_owed=a) for u, a in shares.items()]
    )


def random_expenses(rng: random.Random, members: list, count: int) -> list:
    """Generate balanced expenses with random payers and equal splits (in cents)."""
    expenses = []
    for idx in range(count):
        total_cents = rng.randint(1, 50000)

        payer_ids = rng.sample(members, rng.randint(1, len(members)))
        cuts = sorted(rng.randint(0, total_cents) for _ in range(len(payer_ids) - 1))
        bounds = [0] + cuts + [total_cents]
        paid = {u: (bounds[i + 1] - bounds[i]) / 100 for i, u in enumerate(payer_ids)}

        share_ids = rng.sample(members, rng.randint(1, len(members)))
        base, remainder = divmod(total_cents, len(share_ids))
        owed = {u: (base + (1 if i < remainder else 0)) / 100 for i, u in enumerate(share_ids)}

        expenses.append(build_expense(f"e{idx}", paid, owed))
    return expenses


@pytest.fixture
def make_expense():
    """Factory fixture for ExpenseInput objects."""
    return build_expense


@pytest.fixture
def three_members():
    return ["A", "B", "C"]


@pytest.fixture
def four_way_trip(make_expense):
    """Four expenses netting to A: +30, B/C/D: -10 each."""
    members = ["A", "B", "C", "D"]
    expenses = [
        make_expense("e1", {"A": 20.00}, {"B": 10.00, "C": 10.00}),
        make_expense("e2", {"A": 10.00}, {"D": 10.00}),
        make_expense("e3", {"B": 12.00}, {"B": 6.00, "C": 6.00}),
        make_expense("e4", {"C": 6.00}, {"B": 6.00}),
    ]
    return members, expenses


@pytest.fixture
def random_trip():
    """A seeded random trip: (members, expenses)."""
    rng = random.Random(20240601)
    members = [f"user-{i}" for i in range(7)]
    return members, random_expenses(rng, members, 40)


@pytest.fixture
def expense_generator():
    """Factory fixture: expense_generator(seed, members, count) -> expenses."""
    def generate(seed: int, members: list, count: int) -> list:
        return random_expenses(random.Random(seed), members, count)
    return generate
