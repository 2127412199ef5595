"""
Core Data Models for the Finance Ledger

These models define the strict schemas for every record the ledger holds.
They are designed to:
1. Enforce field-level invariants at construction time
2. Be immutable, so state changes always produce a new collection
3. Serialize losslessly for local storage (camelCase JSON, decimals as text)

DESIGN DECISION: Records are frozen Pydantic v2 models. Updating a record
means building a copy with `model_copy(update=...)`; nothing is mutated in
place.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


ORIGINAL_CATEGORY_TAG_PREFIX = "_originalCategory:"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Kind of money movement."""
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"  # signed: negative = outgoing, positive = incoming


class ExpenseCategory(str, Enum):
    """
    Fixed expense categories.

    Free-text categories from imports are normalized onto this set;
    anything unrecognized becomes OTHER.
    """
    FOOD = "food"
    TRANSPORTATION = "transportation"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    BILLS = "bills"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    TRAVEL = "travel"
    OTHER = "other"


class BudgetPeriod(str, Enum):
    """How often a budget limit resets."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _coerce_calendar_date(value: Any) -> Any:
    """
    Accept ISO datetime strings where a calendar date is expected.

    Older web clients stored dates as full ISO timestamps; only the
    calendar part is meaningful.
    """
    if isinstance(value, str) and len(value) > 10 and value[10] in ("T", " "):
        return value[:10]
    if isinstance(value, dt.datetime):
        return value.date()
    return value


class LedgerModel(BaseModel):
    """Shared configuration for everything stored in the ledger."""

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionFields(LedgerModel):
    """
    Fields and invariants shared by new and stored transactions.
    """

    type: TransactionType = Field(
        ...,
        description="income, expense or transfer"
    )
    amount: Decimal = Field(
        ...,
        description="Non-negative for income/expense, signed for transfer"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="Display text"
    )
    category: Optional[ExpenseCategory] = Field(
        default=None,
        description="Only meaningful for expenses"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date, rendered YYYY-MM-DD"
    )
    tags: list[str] = Field(default_factory=list)

    @field_validator('amount')
    @classmethod
    def amount_is_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @field_validator('date', mode='before')
    @classmethod
    def calendar_date_only(cls, v: Any) -> Any:
        return _coerce_calendar_date(v)

    @field_validator('tags', mode='before')
    @classmethod
    def tags_default(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode='after')
    def validate_type_rules(self) -> 'TransactionFields':
        """Sign and category rules depend on the transaction type."""
        if self.type != TransactionType.TRANSFER and self.amount < 0:
            raise ValueError(f"Amount cannot be negative for {self.type.value}")

        if self.category is not None and self.type != TransactionType.EXPENSE:
            raise ValueError("Category is only allowed on expenses")

        return self

    @property
    def original_category(self) -> Optional[str]:
        """Source category preserved by an import, if any."""
        for tag in self.tags:
            if tag.startswith(ORIGINAL_CATEGORY_TAG_PREFIX):
                return tag[len(ORIGINAL_CATEGORY_TAG_PREFIX):]
        return None


class NewTransaction(TransactionFields):
    """A transaction the caller wants created. The ledger assigns identity."""


class Transaction(TransactionFields):
    """
    A transaction held in the ledger.

    `id` is assigned once and never changes. `updated_at` is refreshed on
    every mutation.
    """

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetFields(LedgerModel):
    """Fields and invariants shared by new and stored budgets."""

    category: ExpenseCategory
    limit: Decimal = Field(
        ...,
        gt=0,
        description="Spending ceiling for one period"
    )
    period: BudgetPeriod
    start_date: dt.date
    end_date: Optional[dt.date] = Field(
        default=None,
        description="Open-ended when absent"
    )

    @field_validator('limit')
    @classmethod
    def limit_is_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Limit must be a finite number")
        return v

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def calendar_date_only(cls, v: Any) -> Any:
        return _coerce_calendar_date(v)

    @model_validator(mode='after')
    def validate_dates(self) -> 'BudgetFields':
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class NewBudget(BudgetFields):
    """A budget the caller wants created."""


class Budget(BudgetFields):
    """A budget held in the ledger."""

    id: str = Field(..., min_length=1)


# =============================================================================
# RESULTS
# =============================================================================

class SummaryPeriod(LedgerModel):
    start: dt.date
    end: dt.date


class FinancialSummary(LedgerModel):
    """Income, expenses and balance over an inclusive date window."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    period: SummaryPeriod


class ImportResult(LedgerModel):
    """
    Outcome of a CSV import.

    `success` counts accepted rows; each error names its source row.
    """

    success: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)
