"""Aggregation queries over the in-memory ledger."""

from finance_ledger.queries.summary import (
    budget_period_window,
    budget_spending,
    describe_period,
    spending_by_category,
    summarize,
)

__all__ = [
    "budget_period_window",
    "budget_spending",
    "describe_period",
    "spending_by_category",
    "summarize",
]
