"""
Local → Remote Migration

Moves finance data that was recorded before a remote store existed into the
remote store, once per device.

STATE MACHINE:
    NOT_MIGRATED --(fires)--> MIGRATED

The state lives in the local store as a flag key, not in the remote store.
The transition fires only when all of these hold:
- the remote backend is available
- the flag is absent
- local storage holds at least one transaction or budget

Once fired, data is copied only if the remote store is empty for both
record kinds, so migration never overwrites or duplicates remote data.
The flag is set afterwards whatever the outcome: migration is try-once.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from finance_ledger.audit.logger import get_logger
from finance_ledger.services.storage.interface import RemoteTable, StorageError
from finance_ledger.services.storage.local import LocalStore
from finance_ledger.services.storage.schema import BUDGETS, TRANSACTIONS, RecordKind
from finance_ledger.sync.reconciler import Reconciler


logger = get_logger(__name__)

RemoteLoader = Callable[[RecordKind], Awaitable[list]]


class MigrationState(str, Enum):
    NOT_MIGRATED = "not_migrated"
    MIGRATED = "migrated"


class MigrationResult(BaseModel):
    """What a migration check did."""

    state: MigrationState
    fired: bool = False
    migrated_transactions: int = Field(default=0, ge=0)
    migrated_budgets: int = Field(default=0, ge=0)
    success: bool = True
    skipped_reason: Optional[str] = None


class MigrationController:
    """
    Runs the one-time migration check at ledger startup.
    """

    def __init__(
        self,
        local_store: LocalStore,
        flag_key: str,
        local_keys: dict[str, str],
        remote_tables: Optional[dict[str, RemoteTable]],
        remote_loader: RemoteLoader,
        reconciler: Optional[Reconciler] = None,
    ):
        """
        Args:
            local_store: Where legacy data and the flag live
            flag_key: Local key marking the migration as done
            local_keys: Local key per record kind name
            remote_tables: Remote table per record kind name, None when
                           the remote backend is unavailable
            remote_loader: The ledger's remote load path for one kind
            reconciler: Writes migrated records to the remote tables
        """
        self._local = local_store
        self._flag_key = flag_key
        self._local_keys = local_keys
        self._remote_tables = remote_tables
        self._remote_loader = remote_loader
        self._reconciler = reconciler or Reconciler()

    @property
    def state(self) -> MigrationState:
        if self._local.has_flag(self._flag_key):
            return MigrationState.MIGRATED
        return MigrationState.NOT_MIGRATED

    async def run(self) -> MigrationResult:
        """
        Evaluate the gate and migrate if it opens.
        """
        if self._remote_tables is None:
            return self._skipped("remote backend unavailable")

        if self.state == MigrationState.MIGRATED:
            return self._skipped("already migrated")

        local_transactions = self._local.load(self._local_keys[TRANSACTIONS.name], TRANSACTIONS.model)
        local_budgets = self._local.load(self._local_keys[BUDGETS.name], BUDGETS.model)

        if not local_transactions and not local_budgets:
            # Flag stays unset: local data written later can still be copied,
            # and the copy never overwrites non-empty remote tables
            return self._skipped("no local data")

        result = await self._migrate(local_transactions, local_budgets)

        # Try-once: the flag is set even if the copy partially failed
        self._local.set_flag(self._flag_key)
        return result

    async def _migrate(self, local_transactions: list, local_budgets: list) -> MigrationResult:
        remote_empty = True
        for kind in (TRANSACTIONS, BUDGETS):
            try:
                existing = await self._remote_loader(kind)
            except StorageError as e:
                # Unknown remote contents count as non-empty
                logger.error("migration_remote_read_failed", kind=kind.name, error=str(e))
                remote_empty = False
                continue
            if existing:
                remote_empty = False

        if not remote_empty:
            logger.info("migration_skipped", reason="remote store already has data")
            return MigrationResult(
                state=MigrationState.MIGRATED,
                fired=True,
                success=True,
                skipped_reason="remote store already has data",
            )

        success = True
        migrated = {TRANSACTIONS.name: 0, BUDGETS.name: 0}
        for kind, records in ((TRANSACTIONS, local_transactions), (BUDGETS, local_budgets)):
            if not records:
                continue
            ok = await self._reconciler.reconcile(self._remote_tables[kind.name], kind, records)
            if ok:
                migrated[kind.name] = len(records)
            success = success and ok

        logger.info(
            "migration_finished",
            transactions=migrated[TRANSACTIONS.name],
            budgets=migrated[BUDGETS.name],
            success=success,
        )
        return MigrationResult(
            state=MigrationState.MIGRATED,
            fired=True,
            migrated_transactions=migrated[TRANSACTIONS.name],
            migrated_budgets=migrated[BUDGETS.name],
            success=success,
        )

    def _skipped(self, reason: str) -> MigrationResult:
        logger.debug("migration_not_fired", reason=reason)
        return MigrationResult(
            state=self.state,
            fired=False,
            skipped_reason=reason,
        )
