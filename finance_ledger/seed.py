"""
Mock Transaction Seeding

Generates a plausible six-month history for demos and manual testing:
1-2 income and 8-15 expense transactions per month, plus a few expenses in
the last seven days. Amounts vary randomly around realistic base values.

Pass a seeded random.Random for reproducible output.
"""

import datetime as dt
import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from finance_ledger.models.finance import ExpenseCategory, NewTransaction, TransactionType


HISTORY_MONTHS = 6
RECENT_DAYS = 7
MIN_EXPENSE = Decimal("5")

INCOME_TEMPLATES = [
    ("Salary", 5500),
    ("Freelance Project", 1200),
    ("Investment Dividends", 350),
    ("Side Business", 800),
]

EXPENSE_TEMPLATES = [
    ("Grocery Shopping", 85, ExpenseCategory.FOOD),
    ("Restaurant Dinner", 45, ExpenseCategory.FOOD),
    ("Coffee & Breakfast", 12, ExpenseCategory.FOOD),
    ("Uber Ride", 25, ExpenseCategory.TRANSPORTATION),
    ("Gas Station", 60, ExpenseCategory.TRANSPORTATION),
    ("Netflix Subscription", 15, ExpenseCategory.ENTERTAINMENT),
    ("Concert Tickets", 120, ExpenseCategory.ENTERTAINMENT),
    ("New Laptop", 1299, ExpenseCategory.SHOPPING),
    ("Clothing", 180, ExpenseCategory.SHOPPING),
    ("Electric Bill", 95, ExpenseCategory.BILLS),
    ("Internet Bill", 75, ExpenseCategory.BILLS),
    ("Rent", 1800, ExpenseCategory.BILLS),
    ("Gym Membership", 50, ExpenseCategory.HEALTHCARE),
    ("Doctor Visit", 150, ExpenseCategory.HEALTHCARE),
    ("Online Course", 299, ExpenseCategory.EDUCATION),
    ("Flight Tickets", 450, ExpenseCategory.TRAVEL),
    ("Hotel Booking", 320, ExpenseCategory.TRAVEL),
    ("Miscellaneous", 35, ExpenseCategory.OTHER),
]


def _money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _expense(rng: random.Random, date: dt.date, spread: float) -> NewTransaction:
    description, base, category = rng.choice(EXPENSE_TEMPLATES)
    amount = max(MIN_EXPENSE, _money(base + rng.uniform(-spread, spread) * base))
    return NewTransaction(
        type=TransactionType.EXPENSE,
        amount=amount,
        description=description,
        category=category,
        date=date,
    )


def generate_mock_transactions(
    today: dt.date,
    rng: Optional[random.Random] = None,
) -> list[NewTransaction]:
    """
    Build mock transaction requests ending at `today`.

    Returned in chronological month order; the recent-days block comes last.
    """
    rng = rng or random.Random()
    requests: list[NewTransaction] = []

    first_of_month = today.replace(day=1)
    for offset in range(HISTORY_MONTHS - 1, -1, -1):
        month = first_of_month - relativedelta(months=offset)

        for _ in range(rng.randint(1, 2)):
            description, base = rng.choice(INCOME_TEMPLATES)
            requests.append(NewTransaction(
                type=TransactionType.INCOME,
                amount=_money(base + rng.uniform(-100, 100)),
                description=description,
                date=month.replace(day=rng.randint(1, 28)),
            ))

        for _ in range(rng.randint(8, 15)):
            requests.append(_expense(rng, month.replace(day=rng.randint(1, 28)), 0.2))

    for offset in range(RECENT_DAYS - 1, -1, -1):
        if rng.random() > 0.3:
            requests.append(_expense(rng, today - dt.timedelta(days=offset), 0.25))

    return requests
