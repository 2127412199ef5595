"""
Finance Ledger Facade

The single entry point the rest of the application uses for finance data.

Flow:
1. initialize() → one-time local → remote migration check, then load()
2. load() → read both record kinds from the remote store if configured,
   else from local storage
3. Mutations → new record tuple swapped into memory, then persisted:
   reconciled into the remote tables, or written over the local blob
4. Queries → computed from memory only

DESIGN DECISION: Memory is authoritative. A mutation that cannot be
persisted still takes effect in memory; the failure is logged, surfaced as
`last_persist_ok` and repaired by the next successful reconciliation.

DESIGN DECISION: Remote writes for a record kind are blocked until that
kind has been loaded successfully. An empty ledger caused by a failed read
must never be reconciled over real remote data.
"""

import asyncio
import datetime as dt
import random
from collections.abc import Callable
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from finance_ledger.audit.logger import AuditLogger, configure_logging, get_logger
from finance_ledger.config import Settings, get_settings
from finance_ledger.importing import CategoryMapper, CsvTransactionImporter
from finance_ledger.models.audit import LedgerEvent, LedgerEventBuilder
from finance_ledger.models.finance import (
    Budget,
    ExpenseCategory,
    FinancialSummary,
    ImportResult,
    NewBudget,
    NewTransaction,
    Transaction,
)
from finance_ledger.models.rows import RowDecodeError
from finance_ledger.queries import summary as queries
from finance_ledger.seed import generate_mock_transactions
from finance_ledger.services.storage import (
    BUDGETS,
    TRANSACTIONS,
    FileKeyValueStore,
    KeyValueStore,
    LocalStore,
    NotFoundError,
    RecordKind,
    RemoteTable,
    StorageError,
    SupabaseClient,
)
from finance_ledger.state import LedgerState
from finance_ledger.sync import MigrationController, MigrationResult, Reconciler


logger = get_logger(__name__)

# Fields a caller may change on an existing transaction
UPDATABLE_TRANSACTION_FIELDS = frozenset(
    {"type", "amount", "description", "category", "date", "tags"}
)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class FinanceLedger:
    """
    Owns the in-memory ledger and decides which backend it persists to.

    The backend is resolved once, at construction. Injected remote tables
    take precedence; otherwise Supabase is used when the settings carry a
    URL and key, and local storage when they don't.
    """

    def __init__(
        self,
        settings: Settings,
        key_value_store: Optional[KeyValueStore] = None,
        transactions_table: Optional[RemoteTable] = None,
        budgets_table: Optional[RemoteTable] = None,
        category_mapper: Optional[CategoryMapper] = None,
        audit_logger: Optional[AuditLogger] = None,
        reconciler: Optional[Reconciler] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._settings = settings
        self._local = LocalStore(
            key_value_store or FileKeyValueStore(settings.local.storage_dir)
        )
        self._local_keys = {
            TRANSACTIONS.name: settings.local.transactions_key,
            BUDGETS.name: settings.local.budgets_key,
        }
        self._remote_tables = self._resolve_remote(settings, transactions_table, budgets_table)

        self._importer = CsvTransactionImporter(category_mapper)
        self._audit_logger = audit_logger or AuditLogger()
        self._reconciler = reconciler or Reconciler()
        self._clock = clock or _utcnow
        self._id_factory = id_factory or _new_id

        self._state = LedgerState()
        self._lock = asyncio.Lock()
        self._remote_ready: set[str] = set()
        self._initialized = False
        self._last_load_ok = False
        self._last_persist_ok = True
        self.migration_result: Optional[MigrationResult] = None

    @staticmethod
    def _resolve_remote(
        settings: Settings,
        transactions_table: Optional[RemoteTable],
        budgets_table: Optional[RemoteTable],
    ) -> Optional[dict[str, RemoteTable]]:
        if (transactions_table is None) != (budgets_table is None):
            raise ValueError("Provide both remote tables or neither")

        if transactions_table is not None:
            return {TRANSACTIONS.name: transactions_table, BUDGETS.name: budgets_table}

        if not settings.supabase.is_configured:
            logger.info("remote_store_not_configured", backend="local")
            return None

        client = SupabaseClient(settings.supabase)
        return {
            TRANSACTIONS.name: client.table(settings.supabase.transactions_table),
            BUDGETS.name: client.table(settings.supabase.budgets_table),
        }

    # =========================================================================
    # READ-ONLY VIEW
    # =========================================================================

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._state.transactions

    @property
    def budgets(self) -> tuple[Budget, ...]:
        return self._state.budgets

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def remote_enabled(self) -> bool:
        return self._remote_tables is not None

    @property
    def backend(self) -> str:
        return "remote" if self.remote_enabled else "local"

    @property
    def last_persist_ok(self) -> bool:
        """Whether the most recent mutation reached its backend in full."""
        return self._last_persist_ok

    # =========================================================================
    # STARTUP
    # =========================================================================

    async def initialize(self) -> bool:
        """
        Run the migration check, then load.

        Safe to call more than once; later calls return the first load's
        outcome without touching any backend.
        """
        if self._initialized:
            return self._last_load_ok

        await self._audit(LedgerEventBuilder.backend_selected(self.backend))

        controller = MigrationController(
            local_store=self._local,
            flag_key=self._settings.local.migration_flag_key,
            local_keys=self._local_keys,
            remote_tables=self._remote_tables,
            remote_loader=self._fetch_remote,
            reconciler=self._reconciler,
        )
        self.migration_result = await controller.run()
        if self.migration_result.fired:
            await self._audit(LedgerEventBuilder.migration_completed(
                self.migration_result.migrated_transactions,
                self.migration_result.migrated_budgets,
                self.migration_result.success,
            ))
        else:
            await self._audit(
                LedgerEventBuilder.migration_skipped(self.migration_result.skipped_reason)
            )

        self._initialized = True
        return await self.load()

    async def load(self) -> bool:
        """
        Replace the in-memory ledger with the backend's contents.

        Returns False if any record kind could not be read from the remote
        store. That kind is left empty and its remote writes stay blocked
        until a later load succeeds.
        """
        async with self._lock:
            ok = True
            for kind in (TRANSACTIONS, BUDGETS):
                if self._remote_tables is None:
                    records = self._local.load(self._local_keys[kind.name], kind.model)
                else:
                    try:
                        records = await self._fetch_remote(kind)
                    except StorageError as e:
                        logger.error("remote_load_failed", kind=kind.name, error=str(e))
                        await self._audit(LedgerEventBuilder.load_failed(kind.name, str(e)))
                        self._remote_ready.discard(kind.name)
                        records = []
                        ok = False
                    else:
                        self._remote_ready.add(kind.name)

                snapshot = self._state.snapshot(kind.name)
                self._state.swap(kind.name, snapshot.version, records)

            self._last_load_ok = ok
            await self._audit(LedgerEventBuilder.ledger_loaded(
                self.backend, len(self.transactions), len(self.budgets)
            ))
            return ok

    async def _fetch_remote(self, kind: RecordKind) -> list:
        """
        Read and decode every remote row of one kind.

        Raises:
            StorageError: If the table cannot be read or holds a malformed row
        """
        table = self._remote_tables[kind.name]
        rows = await table.fetch_rows()
        try:
            return [kind.decode(table.table_name, row) for row in rows]
        except RowDecodeError as e:
            raise StorageError(str(e)) from e

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def add_transaction(self, request: NewTransaction) -> Transaction:
        """Create a transaction and append it to the ledger."""
        async with self._lock:
            now = self._clock()
            tx = Transaction(
                id=self._id_factory(),
                created_at=now,
                updated_at=now,
                **request.model_dump(),
            )
            await self._commit(TRANSACTIONS, lambda records: (*records, tx))

        await self._audit(LedgerEventBuilder.transaction_added(
            tx.id, tx.type.value, str(tx.amount)
        ))
        return tx

    async def update_transaction(self, transaction_id: str, **changes: Any) -> Transaction:
        """
        Change fields of an existing transaction. `updated_at` is refreshed.

        Raises:
            NotFoundError: If no transaction has this id
            ValueError: If a non-updatable field is named or the result is invalid
        """
        unknown = set(changes) - UPDATABLE_TRANSACTION_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        async with self._lock:
            current = next(
                (t for t in self.transactions if t.id == transaction_id), None
            )
            if current is None:
                raise NotFoundError(f"Transaction {transaction_id} not found")

            data = current.model_dump()
            data.update(changes)
            data["updated_at"] = self._clock()
            updated = Transaction.model_validate(data)

            await self._commit(
                TRANSACTIONS,
                lambda records: tuple(
                    updated if t.id == transaction_id else t for t in records
                ),
            )

        await self._audit(
            LedgerEventBuilder.transaction_updated(transaction_id, sorted(changes))
        )
        return updated

    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Remove a transaction.

        Returns:
            True if the transaction existed
        """
        async with self._lock:
            if not any(t.id == transaction_id for t in self.transactions):
                return False
            await self._commit(
                TRANSACTIONS,
                lambda records: tuple(t for t in records if t.id != transaction_id),
            )

        await self._audit(LedgerEventBuilder.transaction_deleted(transaction_id))
        return True

    async def clear_all_transactions(self) -> bool:
        """
        Remove every transaction.

        Returns:
            Whether the empty ledger was persisted
        """
        async with self._lock:
            removed = len(self.transactions)
            ok = await self._commit(TRANSACTIONS, lambda records: ())

        await self._audit(LedgerEventBuilder.cleared(TRANSACTIONS.name, removed))
        return ok

    # =========================================================================
    # BUDGETS
    # =========================================================================

    async def add_budget(self, request: NewBudget) -> Budget:
        async with self._lock:
            budget = Budget(id=self._id_factory(), **request.model_dump())
            await self._commit(BUDGETS, lambda records: (*records, budget))

        await self._audit(LedgerEventBuilder.budget_added(
            budget.id, budget.category.value, str(budget.limit)
        ))
        return budget

    async def delete_budget(self, budget_id: str) -> bool:
        async with self._lock:
            if not any(b.id == budget_id for b in self.budgets):
                return False
            await self._commit(
                BUDGETS,
                lambda records: tuple(b for b in records if b.id != budget_id),
            )

        await self._audit(LedgerEventBuilder.budget_deleted(budget_id))
        return True

    async def clear_all_budgets(self) -> bool:
        async with self._lock:
            removed = len(self.budgets)
            ok = await self._commit(BUDGETS, lambda records: ())

        await self._audit(LedgerEventBuilder.cleared(BUDGETS.name, removed))
        return ok

    # =========================================================================
    # BULK DATA
    # =========================================================================

    async def import_csv(self, text: str) -> ImportResult:
        """
        Import transactions from CSV text.

        Valid rows are appended in a single mutation; invalid rows are
        reported and skipped.
        """
        outcome = self._importer.parse(text)

        if outcome.accepted:
            await self._append_transactions(outcome.accepted)

        await self._audit(
            LedgerEventBuilder.csv_imported(len(outcome.accepted), len(outcome.errors))
        )
        return ImportResult(success=len(outcome.accepted), errors=outcome.errors)

    async def seed_mock_transactions(
        self,
        rng: Optional[random.Random] = None,
    ) -> list[Transaction]:
        """Append a generated six-month demo history."""
        requests = generate_mock_transactions(self._clock().date(), rng)
        created = await self._append_transactions(requests)
        await self._audit(LedgerEventBuilder.mock_data_seeded(len(created)))
        return created

    async def _append_transactions(self, requests: list[NewTransaction]) -> list[Transaction]:
        async with self._lock:
            now = self._clock()
            created = [
                Transaction(
                    id=self._id_factory(),
                    created_at=now,
                    updated_at=now,
                    **request.model_dump(),
                )
                for request in requests
            ]
            await self._commit(TRANSACTIONS, lambda records: (*records, *created))
        return created

    # =========================================================================
    # QUERIES
    # =========================================================================

    def summarize(self, start: dt.date, end: dt.date) -> FinancialSummary:
        summary = queries.summarize(self.transactions, start, end)
        logger.debug(
            "summary_computed",
            period=queries.describe_period(start, end),
            balance=str(summary.balance),
        )
        return summary

    def spending_by_category(
        self,
        start: dt.date,
        end: dt.date,
    ) -> dict[ExpenseCategory, Decimal]:
        return queries.spending_by_category(self.transactions, start, end)

    def budget_spending(self, budget_id: str, as_of: Optional[dt.date] = None) -> Decimal:
        """
        Amount spent against a budget in its current period.

        Raises:
            NotFoundError: If no budget has this id
        """
        budget = next((b for b in self.budgets if b.id == budget_id), None)
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} not found")
        return queries.budget_spending(
            budget, self.transactions, as_of or self._clock().date()
        )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    async def _commit(self, kind: RecordKind, change: Callable[[tuple], tuple]) -> bool:
        """
        Swap in the changed records, then persist them. Caller holds the lock.
        """
        snapshot = self._state.snapshot(kind.name)
        records = tuple(change(snapshot.records))
        self._state.swap(kind.name, snapshot.version, records)
        return await self._persist(kind, records)

    async def _persist(self, kind: RecordKind, records: tuple) -> bool:
        if self._remote_tables is not None:
            if kind.name not in self._remote_ready:
                logger.warning("remote_write_blocked", kind=kind.name, reason="not loaded")
                ok = False
            else:
                ok = await self._reconciler.reconcile(
                    self._remote_tables[kind.name], kind, records
                )
        else:
            key = self._local_keys[kind.name]
            if records:
                ok = self._local.save(key, records, kind.model)
            else:
                self._local.clear(key)
                ok = True

        self._last_persist_ok = ok
        if not ok:
            await self._audit(LedgerEventBuilder.persist_failed(kind.name, self.backend))
        elif self._remote_tables is not None:
            await self._audit(LedgerEventBuilder.reconcile_completed(kind.name, len(records)))
        return ok

    async def _audit(self, event: LedgerEvent) -> None:
        await self._audit_logger.log(event)


def create_ledger(settings: Optional[Settings] = None, **kwargs: Any) -> FinanceLedger:
    """
    Factory function to create a ledger from configuration.

    Configures logging from the settings. Keyword arguments are passed to
    FinanceLedger (e.g. injected stores for testing).

    Returns:
        An uninitialized FinanceLedger; await initialize() before use
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)
    return FinanceLedger(settings, **kwargs)
