"""
Tests for the one-time local → remote migration.
"""

import pytest

from finance_ledger.models.finance import Budget, Transaction
from finance_ledger.services.storage import (
    BUDGETS,
    TRANSACTIONS,
    InMemoryRemoteTable,
    LocalStore,
    MemoryKeyValueStore,
    StorageError,
)
from finance_ledger.sync import MigrationController, MigrationState

from tests.conftest import make_transaction


FLAG = "jarvis_finances_migrated_to_supabase"
LOCAL_KEYS = {"transactions": "jarvis_transactions", "budgets": "jarvis_budgets"}


def make_budget(id: str) -> Budget:
    return Budget(id=id, category="food", limit=100, period="monthly", start_date="2024-01-01")


class Harness:
    """A controller wired to in-memory storage on both sides."""

    def __init__(self, transactions=(), budgets=(), remote_transactions=(), remote=True):
        self.local = LocalStore(MemoryKeyValueStore())
        if transactions:
            self.local.save(LOCAL_KEYS["transactions"], list(transactions), Transaction)
        if budgets:
            self.local.save(LOCAL_KEYS["budgets"], list(budgets), Budget)

        self.tables = {
            TRANSACTIONS.name: InMemoryRemoteTable(
                "finance_transactions",
                rows=[TRANSACTIONS.encode(tx) for tx in remote_transactions],
            ),
            BUDGETS.name: InMemoryRemoteTable("finance_budgets"),
        }
        self.controller = MigrationController(
            local_store=self.local,
            flag_key=FLAG,
            local_keys=LOCAL_KEYS,
            remote_tables=self.tables if remote else None,
            remote_loader=self.load_remote,
        )

    async def load_remote(self, kind):
        table = self.tables[kind.name]
        return [kind.decode(table.table_name, row) for row in await table.fetch_rows()]


class TestMigrationGate:
    """The transition fires only when every condition holds."""

    @pytest.mark.asyncio
    async def test_migrates_local_data_to_empty_remote(self):
        h = Harness(transactions=[make_transaction("t1"), make_transaction("t2")],
                    budgets=[make_budget("b1")])

        result = await h.controller.run()

        assert result.fired is True
        assert result.success is True
        assert result.migrated_transactions == 2
        assert result.migrated_budgets == 1
        assert set(h.tables["transactions"].rows) == {"t1", "t2"}
        assert set(h.tables["budgets"].rows) == {"b1"}
        assert h.controller.state == MigrationState.MIGRATED

    @pytest.mark.asyncio
    async def test_at_most_once(self):
        """A second run never uploads again."""
        h = Harness(transactions=[make_transaction("t1")])
        await h.controller.run()

        h.tables["transactions"].calls.clear()
        result = await h.controller.run()

        assert result.fired is False
        assert result.skipped_reason == "already migrated"
        assert h.tables["transactions"].calls == []

    @pytest.mark.asyncio
    async def test_non_destructive_when_remote_has_data(self):
        """Existing remote rows are never overwritten or duplicated."""
        remote_tx = make_transaction("remote-1", amount="99.00")
        h = Harness(transactions=[make_transaction("local-1")], remote_transactions=[remote_tx])

        result = await h.controller.run()

        assert result.fired is True
        assert result.migrated_transactions == 0
        assert set(h.tables["transactions"].rows) == {"remote-1"}
        assert "upsert_rows" not in h.tables["transactions"].calls
        # Try-once: the flag is set even though nothing was copied
        assert h.controller.state == MigrationState.MIGRATED

    @pytest.mark.asyncio
    async def test_skipped_without_remote(self):
        h = Harness(transactions=[make_transaction("t1")], remote=False)
        result = await h.controller.run()
        assert result.fired is False
        assert h.controller.state == MigrationState.NOT_MIGRATED

    @pytest.mark.asyncio
    async def test_skipped_without_local_data(self):
        """Nothing to migrate leaves the flag unset for a later run."""
        h = Harness()
        result = await h.controller.run()
        assert result.fired is False
        assert result.skipped_reason == "no local data"
        assert h.controller.state == MigrationState.NOT_MIGRATED

    @pytest.mark.asyncio
    async def test_budgets_alone_trigger_migration(self):
        h = Harness(budgets=[make_budget("b1")])
        result = await h.controller.run()
        assert result.migrated_budgets == 1
        assert "upsert_rows" not in h.tables["transactions"].calls


class TestMigrationFailures:

    @pytest.mark.asyncio
    async def test_remote_read_failure_counts_as_non_empty(self):
        h = Harness(transactions=[make_transaction("t1")])

        async def failing_loader(kind):
            raise StorageError("remote down")

        h.controller._remote_loader = failing_loader
        result = await h.controller.run()

        assert result.migrated_transactions == 0
        assert h.tables["transactions"].rows == {}
        assert h.controller.state == MigrationState.MIGRATED

    @pytest.mark.asyncio
    async def test_flag_set_after_partial_failure(self):
        h = Harness(transactions=[make_transaction("t1")], budgets=[make_budget("b1")])
        h.tables["budgets"].fail_on.add("upsert_rows")

        result = await h.controller.run()

        assert result.success is False
        assert result.migrated_transactions == 1
        assert result.migrated_budgets == 0
        assert h.controller.state == MigrationState.MIGRATED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
