"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Sweep batch size and delay have the same defaults the record store
      throttling limits were tuned for (50 records, 1 second)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Run ledger database
    database_url: str = (
        "postgresql+asyncpg://lifecycle:lifecycle@db:5432/lifecycle"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5
    run_ledger_ttl_hours: int = 720

    # Record store (OData-style REST API)
    record_store_url: str = "https://records.example.invalid"
    record_store_api_path: str = "api/data/v9.2"
    record_store_token: str = "placeholder-token"
    record_store_timeout_seconds: float = 30.0
    record_store_max_retries: int = 3
    record_store_base_delay_ms: int = 500
    record_store_max_delay_ms: int = 10_000

    # Entity sets
    ot_education_entity_set: str = "ot_educations"
    ota_education_entity_set: str = "ota_educations"
    membership_settings_entity_set: str = "membership_settings"

    # Sweep
    sweep_batch_size: int = 50
    sweep_batch_delay_seconds: float = 1.0
    sweep_timeout_seconds: float | None = None
    sweep_eligibility_months: list[int] = [1, 6, 12]

    @field_validator("sweep_batch_size")
    @classmethod
    def check_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("sweep_batch_size must be >= 1")
        return v

    @field_validator("sweep_eligibility_months")
    @classmethod
    def check_months(cls, v: list[int]) -> list[int]:
        if any(m < 1 or m > 12 for m in v):
            raise ValueError("sweep_eligibility_months must be within 1-12")
        return v

    # Schedule
    scheduler_enabled: bool = True
    scheduler_timezone: str = "America/Toronto"
    daily_sweep_cron: str = "0 2 * * *"
    annual_sweep_cron: str = "0 3 1 1 *"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
