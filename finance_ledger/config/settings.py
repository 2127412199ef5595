"""
Configuration Management for the Finance Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and handed to the
ledger as one explicit object. Backend selection is resolved once from it,
never from ambient globals at call time.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Remote relational store (Supabase / PostgREST) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: Optional[str] = Field(
        default=None,
        description="Project URL, e.g. https://xyz.supabase.co"
    )
    anon_key: Optional[str] = Field(
        default=None,
        description="Access key sent as apikey and bearer token"
    )

    # Table names within the project
    transactions_table: str = Field(
        default="finance_transactions",
        description="Table holding transaction rows"
    )
    budgets_table: str = Field(
        default="finance_budgets",
        description="Table holding budget rows"
    )

    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request HTTP timeout"
    )

    @field_validator('url')
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip().rstrip("/")

    @property
    def is_configured(self) -> bool:
        """
        Both values must be present for the remote backend to exist.

        Absence of either one is a supported local-only configuration.
        """
        return bool(self.url and self.url.strip()) and bool(
            self.anon_key and self.anon_key.strip()
        )


class LocalStorageSettings(BaseSettings):
    """On-device key-value storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    storage_dir: Path = Field(
        default=Path(".ledger"),
        description="Directory holding one JSON blob per key"
    )
    transactions_key: str = Field(default="jarvis_transactions")
    budgets_key: str = Field(default="jarvis_budgets")
    migration_flag_key: str = Field(
        default="jarvis_finances_migrated_to_supabase",
        description="Marks that the one-time local → remote migration ran"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for ledger log lines"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings. Sub-settings are resolved when the
    container is built, so one Settings instance is one fixed view of
    the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    local: LocalStorageSettings = Field(default_factory=LocalStorageSettings)
    app: AppSettings = Field(default_factory=AppSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
