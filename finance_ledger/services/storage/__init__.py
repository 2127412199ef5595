"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger storage:
a local key-value fallback and a Supabase-backed remote store.
"""

from finance_ledger.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    NotFoundError,
    RemoteTable,
    StorageError,
)
from finance_ledger.services.storage.local import (
    FileKeyValueStore,
    LocalStore,
    MemoryKeyValueStore,
)
from finance_ledger.services.storage.memory import InMemoryRemoteTable
from finance_ledger.services.storage.schema import BUDGETS, TRANSACTIONS, RecordKind
from finance_ledger.services.storage.supabase import SupabaseClient, SupabaseTable

__all__ = [
    # Interfaces
    "KeyValueStore",
    "RemoteTable",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Local storage
    "FileKeyValueStore",
    "LocalStore",
    "MemoryKeyValueStore",
    # Remote storage
    "InMemoryRemoteTable",
    "SupabaseClient",
    "SupabaseTable",
    # Record kinds
    "BUDGETS",
    "TRANSACTIONS",
    "RecordKind",
]
