"""Configuration package."""

from finance_ledger.config.settings import (
    AppSettings,
    LocalStorageSettings,
    Settings,
    SupabaseSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "LocalStorageSettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
]
