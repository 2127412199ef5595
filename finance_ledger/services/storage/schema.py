"""Record kinds: how each ledger collection maps onto storage."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from finance_ledger.models.finance import Budget, Transaction
from finance_ledger.models.rows import BudgetRow, TransactionRow, decode_row, encode_row


@dataclass(frozen=True)
class RecordKind:
    """
    One ledger collection.

    Ties the domain model to its remote row schema. Table names and local
    keys come from configuration; this only knows the shapes.
    """
    name: str
    model: type[BaseModel]
    row_model: type[BaseModel]

    def encode(self, record: BaseModel) -> dict[str, Any]:
        return encode_row(self.row_model, record)

    def decode(self, table: str, row: dict[str, Any]) -> Any:
        return decode_row(self.row_model, table, row)


TRANSACTIONS = RecordKind(name="transactions", model=Transaction, row_model=TransactionRow)
BUDGETS = RecordKind(name="budgets", model=Budget, row_model=BudgetRow)
