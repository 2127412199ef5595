"""
Reconciliation Engine

Makes a remote table hold exactly the records of the in-memory ledger.

ALGORITHM:
1. Empty ledger → delete every remote row, done
2. Read the ids the remote table currently holds
3. Delete orphans (remote ids no longer in the ledger)
4. Upsert every ledger record

Orphans are deleted before the upsert, but a failed read or delete does not
stop the upsert. The result is True only if every step succeeded. Nothing
is retried here: every step is idempotent, so the caller can simply run
reconciliation again.
"""

from collections.abc import Sequence

from pydantic import BaseModel

from finance_ledger.audit.logger import get_logger
from finance_ledger.services.storage.interface import RemoteTable, StorageError
from finance_ledger.services.storage.schema import RecordKind


logger = get_logger(__name__)


class Reconciler:
    """Best-effort, non-transactional mirror of the ledger into a remote table."""

    async def reconcile(
        self,
        table: RemoteTable,
        kind: RecordKind,
        records: Sequence[BaseModel],
    ) -> bool:
        """
        Reconcile one remote table against the authoritative records.

        Never raises for backend failures; they are logged and reflected in
        the returned flag.
        """
        log = logger.bind(table=table.table_name, kind=kind.name)

        if not records:
            ok = await self._safe_write(table.delete_all(), log, "delete_all")
            log.info("reconcile_finished", records=0, success=ok)
            return ok

        current_ids = {record.id for record in records}

        deleted_ok = True
        try:
            existing_ids = await table.list_ids()
        except StorageError as e:
            log.error("reconcile_list_ids_failed", error=str(e))
            deleted_ok = False
        else:
            orphan_ids = existing_ids - current_ids
            if orphan_ids:
                log.info("reconcile_deleting_orphans", orphan_count=len(orphan_ids))
                deleted_ok = await self._safe_write(
                    table.delete_by_ids(sorted(orphan_ids)), log, "delete_by_ids"
                )

        rows = [kind.encode(record) for record in records]
        upserted_ok = await self._safe_write(table.upsert_rows(rows), log, "upsert_rows")

        ok = deleted_ok and upserted_ok
        log.info(
            "reconcile_finished",
            records=len(rows),
            deleted_ok=deleted_ok,
            upserted_ok=upserted_ok,
            success=ok,
        )
        return ok

    @staticmethod
    async def _safe_write(operation, log, step: str) -> bool:
        """Await a write step, converting any failure into False."""
        try:
            ok = await operation
        except StorageError as e:
            log.error("reconcile_step_failed", step=step, error=str(e))
            return False
        if not ok:
            log.warning("reconcile_step_failed", step=step)
        return bool(ok)
