"""
Remote row schemas.

These are the wire shapes of the `finance_transactions` and
`finance_budgets` tables. Decoding fails closed: a row missing a column or
carrying a value of the wrong type raises instead of being coerced into a
half-valid record.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from finance_ledger.models.finance import (
    Budget,
    BudgetPeriod,
    ExpenseCategory,
    Transaction,
    TransactionType,
)


class RowDecodeError(ValueError):
    """A remote row did not match the expected schema."""

    def __init__(self, table: str, row_id: Any, reason: str) -> None:
        super().__init__(f"Malformed row in {table} (id={row_id!r}): {reason}")
        self.table = table
        self.row_id = row_id


class TransactionRow(BaseModel):
    """One row of `finance_transactions`."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    type: TransactionType
    amount: Decimal
    description: str
    category: Optional[ExpenseCategory]
    date: dt.date
    tags: Optional[list[str]]
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_record(cls, tx: Transaction) -> "TransactionRow":
        return cls(
            id=tx.id,
            type=tx.type,
            amount=tx.amount,
            description=tx.description,
            category=tx.category,
            date=tx.date,
            tags=list(tx.tags) or None,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
        )

    def to_record(self) -> Transaction:
        return Transaction(
            id=self.id,
            type=self.type,
            amount=self.amount,
            description=self.description,
            category=self.category,
            date=self.date,
            tags=self.tags or [],
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class BudgetRow(BaseModel):
    """One row of `finance_budgets`. `limit` is a reserved word in SQL."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    category: ExpenseCategory
    limit_amount: Decimal
    period: BudgetPeriod
    start_date: dt.date
    end_date: Optional[dt.date]

    @classmethod
    def from_record(cls, budget: Budget) -> "BudgetRow":
        return cls(
            id=budget.id,
            category=budget.category,
            limit_amount=budget.limit,
            period=budget.period,
            start_date=budget.start_date,
            end_date=budget.end_date,
        )

    def to_record(self) -> Budget:
        return Budget(
            id=self.id,
            category=self.category,
            limit=self.limit_amount,
            period=self.period,
            start_date=self.start_date,
            end_date=self.end_date,
        )


def encode_row(row_model: type[BaseModel], record: BaseModel) -> dict[str, Any]:
    """Render a domain record as a JSON-ready row dict."""
    return row_model.from_record(record).model_dump(mode="json")


def decode_row(row_model: type[BaseModel], table: str, row: dict[str, Any]) -> Any:
    """
    Parse a raw row into a domain record.

    Raises RowDecodeError when the row or the resulting record is invalid.
    """
    row_id = row.get("id") if isinstance(row, dict) else None
    try:
        return row_model.model_validate(row).to_record()
    except ValidationError as e:
        reason = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
            for err in e.errors()
        )
        raise RowDecodeError(table, row_id, reason) from e
