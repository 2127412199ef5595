"""
Copy-on-Write Ledger State

The in-memory ledger is a pair of immutable tuples (transactions, budgets)
plus a version counter. A mutation reads a snapshot, builds a new tuple and
swaps it in only if nobody else swapped since the snapshot was taken.

DESIGN DECISION: A stale swap raises instead of silently overwriting.
Losing a concurrent write is a bug, not a recoverable condition.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from finance_ledger.models.finance import Budget, Transaction


T = TypeVar("T")

KINDS = ("transactions", "budgets")


class VersionConflictError(RuntimeError):
    """A swap was attempted against an outdated snapshot."""

    def __init__(self, kind: str, expected: int, actual: int):
        super().__init__(
            f"Stale write to {kind}: expected version {expected}, ledger is at {actual}"
        )
        self.kind = kind
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    """An immutable view of one record kind at a given version."""
    version: int
    records: tuple[T, ...]


class LedgerState:
    """
    Holds the authoritative record tuples.

    The version counter is shared by both kinds and increases by one on
    every successful swap.
    """

    def __init__(self) -> None:
        self._version = 0
        self._records: dict[str, tuple] = {kind: () for kind in KINDS}

    @property
    def version(self) -> int:
        return self._version

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._records["transactions"]

    @property
    def budgets(self) -> tuple[Budget, ...]:
        return self._records["budgets"]

    def snapshot(self, kind: str) -> Snapshot:
        return Snapshot(version=self._version, records=self._records[kind])

    def swap(self, kind: str, expected_version: int, records) -> int:
        """
        Replace the records of `kind` if the ledger is still at
        `expected_version`.

        Returns:
            The new version

        Raises:
            VersionConflictError: If another swap happened in between
        """
        if kind not in self._records:
            raise KeyError(f"Unknown record kind: {kind}")
        if expected_version != self._version:
            raise VersionConflictError(kind, expected_version, self._version)

        self._records[kind] = tuple(records)
        self._version += 1
        return self._version
