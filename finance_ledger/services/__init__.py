"""Services package."""

from finance_ledger.services.storage import (
    BUDGETS,
    TRANSACTIONS,
    ConnectionError,
    FileKeyValueStore,
    InMemoryRemoteTable,
    KeyValueStore,
    LocalStore,
    MemoryKeyValueStore,
    NotFoundError,
    RecordKind,
    RemoteTable,
    StorageError,
    SupabaseClient,
    SupabaseTable,
)

__all__ = [
    "BUDGETS",
    "TRANSACTIONS",
    "ConnectionError",
    "FileKeyValueStore",
    "InMemoryRemoteTable",
    "KeyValueStore",
    "LocalStore",
    "MemoryKeyValueStore",
    "NotFoundError",
    "RecordKind",
    "RemoteTable",
    "StorageError",
    "SupabaseClient",
    "SupabaseTable",
]
