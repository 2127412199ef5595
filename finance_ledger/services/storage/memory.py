"""In-memory remote table, for tests and offline runs."""

import copy
from collections.abc import Iterable
from typing import Any, Optional

from finance_ledger.services.storage.interface import RemoteTable, StorageError


class InMemoryRemoteTable(RemoteTable):
    """
    Behaves like a remote table keyed by `id`.

    Individual operations can be made to fail through `fail_on`, which
    holds operation names ("list_ids", "fetch_rows", "upsert_rows",
    "delete_by_ids", "delete_all"). Every call is recorded in `calls`.
    """

    def __init__(
        self,
        table_name: str = "memory",
        rows: Optional[Iterable[dict[str, Any]]] = None,
    ):
        self.table_name = table_name
        self._rows: dict[str, dict[str, Any]] = {}
        for row in rows or ():
            self._rows[row["id"]] = copy.deepcopy(row)
        self.fail_on: set[str] = set()
        self.calls: list[str] = []

    @property
    def rows(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._rows)

    def _enter(self, operation: str) -> bool:
        self.calls.append(operation)
        return operation not in self.fail_on

    async def list_ids(self) -> set[str]:
        if not self._enter("list_ids"):
            raise StorageError(f"list_ids failed on {self.table_name}")
        return set(self._rows)

    async def fetch_rows(self) -> list[dict[str, Any]]:
        if not self._enter("fetch_rows"):
            raise StorageError(f"fetch_rows failed on {self.table_name}")
        return [copy.deepcopy(row) for row in self._rows.values()]

    async def upsert_rows(self, rows: list[dict[str, Any]]) -> bool:
        if not self._enter("upsert_rows"):
            return False
        for row in rows:
            self._rows[row["id"]] = copy.deepcopy(row)
        return True

    async def delete_by_ids(self, ids: Iterable[str]) -> bool:
        if not self._enter("delete_by_ids"):
            return False
        for row_id in ids:
            self._rows.pop(row_id, None)
        return True

    async def delete_all(self) -> bool:
        if not self._enter("delete_all"):
            return False
        self._rows.clear()
        return True
