"""
Aggregation Queries

DESIGN DECISION: Aggregation is a PURE function of the in-memory ledger.
Nothing here touches a backend, so a summary always reflects exactly what
the ledger currently holds, whichever store it was loaded from.

Date windows are inclusive on both ends; a window whose end precedes its
start simply matches nothing. Amounts stay Decimal end to end.
"""

import datetime as dt
from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from finance_ledger.models.finance import (
    Budget,
    BudgetPeriod,
    ExpenseCategory,
    FinancialSummary,
    SummaryPeriod,
    Transaction,
    TransactionType,
)


def _in_window(tx: Transaction, start: dt.date, end: dt.date) -> bool:
    return start <= tx.date <= end


def summarize(
    transactions: Iterable[Transaction],
    start: dt.date,
    end: dt.date,
) -> FinancialSummary:
    """
    Income, expenses and balance for transactions dated within [start, end].

    Transfers move money between accounts and are not counted.
    """
    income = Decimal("0")
    expenses = Decimal("0")
    for tx in transactions:
        if not _in_window(tx, start, end):
            continue
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            expenses += tx.amount

    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        balance=income - expenses,
        period=SummaryPeriod(start=start, end=end),
    )


def spending_by_category(
    transactions: Iterable[Transaction],
    start: dt.date,
    end: dt.date,
) -> dict[ExpenseCategory, Decimal]:
    """Expense totals per category. Uncategorized expenses count as OTHER."""
    totals: dict[ExpenseCategory, Decimal] = {}
    for tx in transactions:
        if tx.type != TransactionType.EXPENSE or not _in_window(tx, start, end):
            continue
        key = tx.category or ExpenseCategory.OTHER
        totals[key] = totals.get(key, Decimal("0")) + tx.amount
    return totals


_PERIOD_STEP = {
    BudgetPeriod.WEEKLY: relativedelta(weeks=1),
    BudgetPeriod.MONTHLY: relativedelta(months=1),
    BudgetPeriod.YEARLY: relativedelta(years=1),
}


def _periods_elapsed(budget: Budget, as_of: dt.date) -> int:
    start = budget.start_date
    if budget.period == BudgetPeriod.WEEKLY:
        return (as_of - start).days // 7

    if budget.period == BudgetPeriod.MONTHLY:
        n = (as_of.year - start.year) * 12 + (as_of.month - start.month)
    else:
        n = as_of.year - start.year

    # Step back if the candidate period has not started yet (e.g. day 31)
    if start + _PERIOD_STEP[budget.period] * n > as_of:
        n -= 1
    return n


def budget_period_window(budget: Budget, as_of: dt.date) -> Optional[SummaryPeriod]:
    """
    The budget period containing `as_of`, or None if the budget is not
    active on that date.

    Periods are counted from `start_date` so month-end budgets do not drift
    (Jan 31 -> Feb 29 -> Mar 31). The last window is clipped to `end_date`.
    """
    if as_of < budget.start_date:
        return None
    if budget.end_date and as_of > budget.end_date:
        return None

    step = _PERIOD_STEP[budget.period]
    n = _periods_elapsed(budget, as_of)
    window_start = budget.start_date + step * n
    window_end = budget.start_date + step * (n + 1) - dt.timedelta(days=1)

    if budget.end_date and window_end > budget.end_date:
        window_end = budget.end_date

    return SummaryPeriod(start=window_start, end=window_end)


def budget_spending(
    budget: Budget,
    transactions: Iterable[Transaction],
    as_of: dt.date,
) -> Decimal:
    """Amount spent against `budget` in its period containing `as_of`."""
    window = budget_period_window(budget, as_of)
    if window is None:
        return Decimal("0")

    totals = spending_by_category(transactions, window.start, window.end)
    return totals.get(budget.category, Decimal("0"))


def describe_period(start: Optional[dt.date], end: Optional[dt.date]) -> str:
    """Human-readable date range, used in log lines."""
    if start and end:
        if start == end:
            return f"on {start.strftime('%d %b %Y')}"
        elif start.month == end.month and start.year == end.year:
            return f"in {start.strftime('%B %Y')}"
        elif start.year == end.year:
            return f"from {start.strftime('%b')} to {end.strftime('%b %Y')}"
        else:
            return f"from {start.strftime('%b %Y')} to {end.strftime('%b %Y')}"
    elif start:
        return f"from {start.strftime('%d %b %Y')}"
    elif end:
        return f"until {end.strftime('%d %b %Y')}"
    return ""
