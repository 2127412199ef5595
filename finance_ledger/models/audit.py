"""
Ledger Event Models

Every significant ledger action produces an event. Events are written to the
structured log; there is no user-facing error surface in this package, so
the log is where failures become observable.

DESIGN DECISION: Events are plain data. Building them is separated from
emitting them so flows can be tested without a logger.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we record."""
    # Startup
    BACKEND_SELECTED = "backend_selected"
    LEDGER_LOADED = "ledger_loaded"
    LOAD_FAILED = "load_failed"

    # Mutations
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTIONS_CLEARED = "transactions_cleared"
    BUDGET_ADDED = "budget_added"
    BUDGET_DELETED = "budget_deleted"
    BUDGETS_CLEARED = "budgets_cleared"

    # Persistence
    PERSIST_FAILED = "persist_failed"
    RECONCILE_COMPLETED = "reconcile_completed"

    # Bulk data
    CSV_IMPORTED = "csv_imported"
    MOCK_DATA_SEEDED = "mock_data_seeded"

    # Migration
    MIGRATION_COMPLETED = "migration_completed"
    MIGRATION_SKIPPED = "migration_skipped"


class AuditSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """
    A single ledger event.
    """

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: LedgerEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What the event is about
    record_kind: Optional[str] = Field(
        default=None,
        description="'transactions' or 'budgets'"
    )
    record_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "record_kind": self.record_kind,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.transaction_added(tx.id, str(tx.amount))
        event = LedgerEventBuilder.persist_failed("budgets", "remote")
    """

    @staticmethod
    def backend_selected(backend: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BACKEND_SELECTED,
            description=f"Ledger backend: {backend}",
            details={"backend": backend},
        )

    @staticmethod
    def ledger_loaded(backend: str, transactions: int, budgets: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_LOADED,
            description=f"Loaded {transactions} transactions and {budgets} budgets from {backend}",
            details={
                "backend": backend,
                "transactions": transactions,
                "budgets": budgets,
            },
        )

    @staticmethod
    def load_failed(kind: str, error_message: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            record_kind=kind,
            description=f"Could not load {kind} from the remote store",
            error_message=error_message,
        )

    @staticmethod
    def transaction_added(transaction_id: str, tx_type: str, amount: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_ADDED,
            record_kind="transactions",
            record_id=transaction_id,
            description=f"Transaction added: {tx_type} {amount}",
            details={"type": tx_type, "amount": amount},
        )

    @staticmethod
    def transaction_updated(transaction_id: str, fields: list[str]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_UPDATED,
            record_kind="transactions",
            record_id=transaction_id,
            description=f"Transaction updated: {', '.join(fields)}",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_deleted(transaction_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.TRANSACTION_DELETED,
            record_kind="transactions",
            record_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def cleared(kind: str, removed: int) -> LedgerEvent:
        event_type = (
            LedgerEventType.TRANSACTIONS_CLEARED
            if kind == "transactions"
            else LedgerEventType.BUDGETS_CLEARED
        )
        return LedgerEvent(
            event_type=event_type,
            record_kind=kind,
            description=f"All {kind} cleared ({removed} removed)",
            details={"removed": removed},
        )

    @staticmethod
    def budget_added(budget_id: str, category: str, limit: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BUDGET_ADDED,
            record_kind="budgets",
            record_id=budget_id,
            description=f"Budget added: {category} limit {limit}",
            details={"category": category, "limit": limit},
        )

    @staticmethod
    def budget_deleted(budget_id: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BUDGET_DELETED,
            record_kind="budgets",
            record_id=budget_id,
            description="Budget deleted",
        )

    @staticmethod
    def persist_failed(kind: str, backend: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.PERSIST_FAILED,
            severity=AuditSeverity.WARNING,
            record_kind=kind,
            description=(
                f"{kind.capitalize()} updated in memory but not fully persisted to {backend}"
            ),
            details={"backend": backend},
        )

    @staticmethod
    def reconcile_completed(kind: str, count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.RECONCILE_COMPLETED,
            severity=AuditSeverity.DEBUG,
            record_kind=kind,
            description=f"Remote {kind} reconciled to {count} records",
            details={"count": count},
        )

    @staticmethod
    def csv_imported(accepted: int, rejected: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CSV_IMPORTED,
            severity=AuditSeverity.WARNING if rejected else AuditSeverity.INFO,
            record_kind="transactions",
            description=f"CSV import: {accepted} accepted, {rejected} rejected",
            details={"accepted": accepted, "rejected": rejected},
        )

    @staticmethod
    def mock_data_seeded(count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MOCK_DATA_SEEDED,
            record_kind="transactions",
            description=f"Seeded {count} mock transactions",
            details={"count": count},
        )

    @staticmethod
    def migration_completed(transactions: int, budgets: int, success: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MIGRATION_COMPLETED,
            severity=AuditSeverity.INFO if success else AuditSeverity.WARNING,
            description=(
                f"Migrated {transactions} transactions and {budgets} budgets "
                f"to the remote store"
            ),
            details={
                "transactions": transactions,
                "budgets": budgets,
                "success": success,
            },
        )

    @staticmethod
    def migration_skipped(reason: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.MIGRATION_SKIPPED,
            description=f"Migration skipped: {reason}",
            details={"reason": reason},
        )
