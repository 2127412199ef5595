"""
Finance Ledger - Source Package

Persistence and synchronization core for a personal finance ledger:
transactions and budgets held in memory, mirrored to a Supabase project
when one is configured and to local storage otherwise.

DESIGN PRINCIPLES:
1. Memory is authoritative; backends are mirrors
2. Synchronization is best-effort and idempotent, never retried blindly
3. A failed read must never wipe remote data
4. Every mutation is logged
5. Storage layer is swappable
"""

from finance_ledger.ledger import FinanceLedger, create_ledger

__version__ = "1.0.0"
__author__ = "Finance Ledger Team"

__all__ = ["FinanceLedger", "create_ledger"]
