"""
Shared fixtures.

No test touches the network or the working directory: remote tables are
in memory and local storage is a dict or a pytest tmp_path.
"""

import datetime as dt
import itertools
from decimal import Decimal

import pytest

from finance_ledger.config import (
    AppSettings,
    LocalStorageSettings,
    Settings,
    SupabaseSettings,
)
from finance_ledger.ledger import FinanceLedger
from finance_ledger.models.finance import Transaction, TransactionType
from finance_ledger.services.storage import InMemoryRemoteTable, MemoryKeyValueStore


FIXED_NOW = dt.datetime(2024, 3, 15, 12, 0, tzinfo=dt.timezone.utc)


def make_transaction(
    id: str,
    type: TransactionType = TransactionType.EXPENSE,
    amount: str = "10.00",
    date: str = "2024-01-15",
    **kwargs,
) -> Transaction:
    return Transaction(
        id=id,
        type=type,
        amount=Decimal(amount),
        description=kwargs.pop("description", f"Transaction {id}"),
        date=date,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
        **kwargs,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Local-only settings rooted in a temporary directory."""
    return Settings(
        supabase=SupabaseSettings(url=None, anon_key=None),
        local=LocalStorageSettings(storage_dir=tmp_path / "ledger"),
        app=AppSettings(),
    )


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def remote_tables() -> tuple[InMemoryRemoteTable, InMemoryRemoteTable]:
    return (
        InMemoryRemoteTable("finance_transactions"),
        InMemoryRemoteTable("finance_budgets"),
    )


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def local_ledger(settings, kv_store, clock, id_factory) -> FinanceLedger:
    """A ledger in local mode."""
    return FinanceLedger(settings, key_value_store=kv_store, clock=clock, id_factory=id_factory)


@pytest.fixture
def remote_ledger(settings, kv_store, remote_tables, clock, id_factory) -> FinanceLedger:
    """A ledger backed by in-memory remote tables."""
    transactions_table, budgets_table = remote_tables
    return FinanceLedger(
        settings,
        key_value_store=kv_store,
        transactions_table=transactions_table,
        budgets_table=budgets_table,
        clock=clock,
        id_factory=id_factory,
    )
