"""Engine configuration loaded from environment variables."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Engine settings loaded from environment variables with DISTINCT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="DISTINCT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Catalog definition (stores, virtual views, layers).
    catalog_path: Path = Path("catalog.yaml")

    # Reject view lookups whose column matches no select item before running
    # anything.  When False the zero-column statement is sent to the database
    # and the lookup fails there instead.
    strict_column_match: bool = True

    # Upper bound applied to caller supplied limits; None leaves them as is.
    max_limit: int | None = None

    @field_validator("max_limit")
    @classmethod
    def _positive_limit(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("max_limit must be a positive integer")
        return v

    def cap_limit(self, limit: int | None) -> int | None:
        """Return *limit* capped at ``max_limit`` (the cap applies when no limit is given)."""
        if self.max_limit is None:
            return limit
        if limit is None:
            return self.max_limit
        return min(limit, self.max_limit)


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings with catalog %s", settings.catalog_path)

    return settings
