"""
Settings for the stock ledger.

Each group reads its own environment prefix (``STORAGE_``, ``LEDGER_``,
``API_``); top-level fields read unprefixed variables and ``.env``.
Limits the ledger depends on, such as a positive pool size or at least one
CAS attempt, are enforced here so a bad deployment fails at startup rather
than on the first write.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Where the ledger database lives and how it is opened."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"
    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0, description="SQLite busy timeout, ms")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Ledger rules and concurrency tuning."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # Balance CAS attempts before a conflict surfaces as insufficient stock
    cas_max_retries: int = Field(default=5, ge=1)

    # BEGIN IMMEDIATE attempts when another writer holds the lock
    lock_retry_attempts: int = Field(default=3, ge=1)
    lock_retry_delay: float = Field(default=0.05, ge=0)

    # Explanation length required for check-ins/check-outs with no PO line or request
    min_explanation_length: int = Field(default=10, ge=0)

    expiring_soon_days: int = Field(default=30, ge=0)
    unbatched_label: str = "No Batch"


class APISettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Stock Ledger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def create_data_dir(self) -> "Settings":
        self.storage.data_dir.mkdir(parents=True, exist_ok=True)
        return self


_cached: Settings | None = None


def get_settings() -> Settings:
    """Settings for this process, read from the environment on first use."""
    global _cached
    if _cached is None:
        _cached = Settings()
    return _cached


def reset_settings() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    global _cached
    _cached = None
