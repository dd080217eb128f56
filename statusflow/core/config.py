"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Engine limits (retry policy, recursion depth, rate
window) are settings so operators can tune them per deployment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "statusflow"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database (SQLAlchemy async URL; postgresql+asyncpg in production)
    database_url: str = "sqlite+aiosqlite:///./statusflow.db"
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Request / middleware
    organization_header_name: str = "X-Organization-ID"
    correlation_id_header: str = "X-Correlation-ID"
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Event bus
    event_batch_size: int = 50
    event_max_retry_attempts: int = 3
    event_retry_delay_ms: int = 5_000
    # "fixed" waits event_retry_delay_ms between attempts; "exponential"
    # doubles it per attempt.
    event_retry_backoff: Literal["fixed", "exponential"] = "fixed"

    # Retention
    event_retention_days: int = 7
    execution_retention_days: int = 30
    cleanup_batch_size: int = 500

    # Automation safety limits
    automation_max_recursion_depth: int = 5
    automation_rate_limit_window_ms: int = 60_000
    automation_max_executions_per_window: int = 100

    # In-process job queue
    scheduler_autostart: bool = True
    # A job that raises is rolled back and resubmitted until it has run
    # job_max_attempts times; the n-th retry waits n * job_retry_delay_ms.
    job_max_attempts: int = 3
    job_retry_delay_ms: int = 1_000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Reject configurations that would stall or disable the engine guards."""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        positive = {
            "event_batch_size": self.event_batch_size,
            "event_max_retry_attempts": self.event_max_retry_attempts,
            "automation_max_recursion_depth": self.automation_max_recursion_depth,
            "automation_rate_limit_window_ms": self.automation_rate_limit_window_ms,
            "automation_max_executions_per_window": self.automation_max_executions_per_window,
            "cleanup_batch_size": self.cleanup_batch_size,
            "job_max_attempts": self.job_max_attempts,
        }
        for name, value in positive.items():
            if value < 1:
                raise ValueError(f"{name.upper()} must be >= 1, got {value}")
        if self.event_retry_delay_ms < 0:
            raise ValueError(
                f"EVENT_RETRY_DELAY_MS must be >= 0, got {self.event_retry_delay_ms}"
            )
        if self.job_retry_delay_ms < 0:
            raise ValueError(f"JOB_RETRY_DELAY_MS must be >= 0, got {self.job_retry_delay_ms}")
        return self

    @property
    def is_sqlite(self) -> bool:
        """True when database_url points at SQLite (tests, local runs)."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return cached settings. Call get_settings.cache_clear() to re-read env."""
    return Settings()
