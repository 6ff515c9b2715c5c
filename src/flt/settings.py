"""
Single source of truth for all FLT_* environment variables.

Values come from the process environment or a local .env file.

Usage::

    from flt.settings import get_settings
    s = get_settings()
    print(s.database_url, s.default_track)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flt.models import Track


class Settings(BaseSettings):
    """All Fund Launch Tracker settings, loaded from FLT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Environment ───────────────────────────────────────────────────────────
    env: Literal["local", "dev", "prod"] = "local"

    # ── Persistence ───────────────────────────────────────────────────────────
    database_url: str = "sqlite:///./fund_launch.db"
    sql_echo: bool = False

    # Disable to keep progress in memory for the lifetime of the process.
    persistence_enabled: bool = True

    # Key-value slot names.
    state_key: str = "tasks"
    onboarding_key: str = "hasCompletedOnboarding"

    # ── Progression ───────────────────────────────────────────────────────────
    # Track generated by `flt init` when none is given on the command line.
    default_track: Track | None = None

    # Catalog JSON file; empty string → bundled fund launch catalog.
    catalog_path: str = ""

    # ── Observability ─────────────────────────────────────────────────────────
    log_level: str = "INFO"

    @field_validator("default_track", mode="before")
    @classmethod
    def _parse_track(cls, value: object) -> object:
        if isinstance(value, str):
            return Track.parse(value)
        return value

    @model_validator(mode="after")
    def _validate_config(self) -> Settings:
        """Collect every configuration problem before raising."""
        errors: list[str] = []

        if self.env != "local" and ":memory:" in self.database_url:
            errors.append(
                f"FLT_DATABASE_URL must not be an in-memory database (env={self.env!r}: "
                "progress would be lost on exit)"
            )

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            errors.append(f"FLT_LOG_LEVEL {self.log_level!r} is not a logging level")

        if self.state_key == self.onboarding_key:
            errors.append("FLT_STATE_KEY and FLT_ONBOARDING_KEY must differ")

        if errors:
            raise ValueError(
                f"[FLT env={self.env!r}] Configuration errors:\n  - " + "\n  - ".join(errors)
            )

        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (used in tests)."""
    get_settings.cache_clear()
