"""Remote synchronization: reconciliation and one-time migration."""

from finance_ledger.sync.migration import (
    MigrationController,
    MigrationResult,
    MigrationState,
)
from finance_ledger.sync.reconciler import Reconciler

__all__ = [
    "MigrationController",
    "MigrationResult",
    "MigrationState",
    "Reconciler",
]
