"""
Centralised configuration for the CodexAudit client.

All environment variables are declared once in ``Settings`` (pydantic-settings).
The module-level ``settings`` singleton is the single source of truth; every
other module should import from here instead of calling ``os.getenv`` directly.

Usage:

    from utils.config import settings

    print(settings.api_url)         # base URL of the scan service
    print(settings.poll_interval)   # typed float, default 3.0
"""

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from infra.logging_config import configure_logging

# Resolve .env relative to this file so it's always found regardless of cwd
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


# ---------------------------------------------------------------------------
# Settings: every env var the client reads, with types and defaults
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Client settings loaded from environment variables / .env file.

    pydantic-settings maps ``UPPER_CASE`` env vars to ``lower_case`` fields
    automatically, so ``POLL_INTERVAL`` → ``settings.poll_interval``.
    """

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",          # silently ignore unknown env vars
        case_sensitive=False,
        populate_by_name=True,
    )

    # --- Scan service --------------------------------------------------------
    #: Opaque prefix for /start-job, /job-status and /download-report.
    #: ``VITE_API_URL`` is accepted so a frontend .env can be shared.
    api_url: str = Field(
        default="http://localhost:8000",
        validation_alias=AliasChoices("API_URL", "VITE_API_URL"),
    )
    #: Per-request timeout in seconds; None leaves requests unbounded
    request_timeout: Optional[float] = None

    # --- Polling -------------------------------------------------------------
    #: Seconds between status polls
    poll_interval: float = 3.0
    #: Consecutive failed polls tolerated before giving up (0 = stop on first)
    poll_max_retries: int = 0

    # --- Logging -------------------------------------------------------------
    logs_dir: str = "logs"

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @field_validator("poll_interval")
    @classmethod
    def _positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("POLL_INTERVAL must be positive")
        return v

    @field_validator("poll_max_retries")
    @classmethod
    def _non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("POLL_MAX_RETRIES must be >= 0")
        return v


#: Singleton; import this in all consumer modules.
settings = Settings()


def setup_logging() -> str:
    """Configure logging to output to both console and file."""
    return configure_logging(
        log_file_prefix="codex_audit",
        logs_dir=settings.logs_dir,
        third_party_levels={
            "httpx": "WARNING",
            "httpcore": "WARNING",
            "asyncio": "WARNING",
        },
    )
