from pathlib import Path
from typing import Literal
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    database_path: str = "./data/iptv_guide.db"
    fetch_timeout_sec: float = 120.0  # Per-request source download timeout, 0 disables timeout
    schedule_upcoming_count: int = 5
    guide_date_fallback: Literal["iso8601", "reject"] = "iso8601"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("fetch_timeout_sec")
    @classmethod
    def validate_fetch_timeout(cls, value: float) -> float:
        """Validate source download timeout (seconds)."""
        if value < 0:
            raise ValueError("fetch_timeout_sec must be >= 0")
        return value

    @field_validator("schedule_upcoming_count")
    @classmethod
    def validate_upcoming_count(cls, value: int) -> int:
        """Ensure the default number of upcoming programmes is non-negative."""
        if value < 0:
            raise ValueError("schedule_upcoming_count must be >= 0")
        return value

    @field_validator("guide_date_fallback", mode="before")
    @classmethod
    def normalize_date_fallback(cls, value):
        """Accept the policy name case-insensitively."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @property
    def fetch_timeout(self) -> float | None:
        """Timeout to hand to the fetch service (None when disabled)."""
        return self.fetch_timeout_sec or None

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info(
            "  Fetch Timeout: %s",
            f"{self.fetch_timeout_sec}s" if self.fetch_timeout_sec else "disabled",
        )
        logger.info("  Upcoming Programmes: %s", self.schedule_upcoming_count)
        logger.info("  Guide Date Fallback: %s", self.guide_date_fallback)
        logger.info("  Log Level: %s", self.log_level)


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
