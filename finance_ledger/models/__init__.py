"""
Data Models Package

This package contains all Pydantic models used by the finance ledger.
All data flowing through the ledger must conform to these schemas.
"""

from finance_ledger.models.finance import (
    ORIGINAL_CATEGORY_TAG_PREFIX,
    Budget,
    BudgetPeriod,
    ExpenseCategory,
    FinancialSummary,
    ImportResult,
    NewBudget,
    NewTransaction,
    SummaryPeriod,
    Transaction,
    TransactionType,
)
from finance_ledger.models.rows import (
    BudgetRow,
    RowDecodeError,
    TransactionRow,
)
from finance_ledger.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Ledger records
    "ORIGINAL_CATEGORY_TAG_PREFIX",
    "Budget",
    "BudgetPeriod",
    "ExpenseCategory",
    "FinancialSummary",
    "ImportResult",
    "NewBudget",
    "NewTransaction",
    "SummaryPeriod",
    "Transaction",
    "TransactionType",
    # Remote rows
    "BudgetRow",
    "RowDecodeError",
    "TransactionRow",
    # Events
    "AuditSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
