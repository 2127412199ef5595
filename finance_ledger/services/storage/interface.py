"""
Abstract Storage Interfaces

DESIGN DECISION: The ledger talks to two kinds of storage through small
abstract interfaces:
1. A synchronous key-value store on the device (the fallback backend)
2. An asynchronous remote table per record kind (the primary backend)

This lets us:
- Swap the remote store without touching ledger logic
- Use in-memory storage for testing
- Keep reconciliation and migration decoupled from any one backend

The interface is intentionally simple - we're not building a full ORM.
Just the operations reconciliation and loading need.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Optional


class KeyValueStore(ABC):
    """
    Raw text storage keyed by name.

    Reads and writes are synchronous. Implementations may raise OSError
    from `set_item`; callers decide how to report it.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored text, or None if the key is absent."""
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store text under a key, replacing any previous value."""
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error."""
        pass


class RemoteTable(ABC):
    """
    Abstract interface for one remote table of ledger rows.

    Rows are plain dicts in backend column format. Every row has a
    string `id` column that is the table's conflict key.

    Reads raise StorageError on failure. Writes catch backend failures,
    log them and return False.
    """

    table_name: str

    @abstractmethod
    async def list_ids(self) -> set[str]:
        """
        Return the ids of all rows currently in the table.

        Raises:
            StorageError: If the table cannot be read
        """
        pass

    @abstractmethod
    async def fetch_rows(self) -> list[dict[str, Any]]:
        """
        Return every row in the table.

        Raises:
            StorageError: If the table cannot be read
        """
        pass

    @abstractmethod
    async def upsert_rows(self, rows: list[dict[str, Any]]) -> bool:
        """
        Insert rows, fully replacing existing rows with the same id.

        Returns:
            True if every row was written
        """
        pass

    @abstractmethod
    async def delete_by_ids(self, ids: Iterable[str]) -> bool:
        """
        Delete the rows with the given ids. Unknown ids are ignored.

        Returns:
            True if the delete was accepted
        """
        pass

    @abstractmethod
    async def delete_all(self) -> bool:
        """
        Delete every row in the table.

        Returns:
            True if the delete was accepted
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in the ledger."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
