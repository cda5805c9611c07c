"""Centralized configuration: Pydantic BaseSettings with TOML + dotenv sources.

Settings live in containerwatch.toml. Environment variables override it using
the ``CONTAINERWATCH_`` prefix and ``__`` as the nested delimiter
(e.g. ``CONTAINERWATCH_INTERVALS__POLL=5``).

Priority (highest wins): init args > env vars > .env > containerwatch.toml

Usage::

    from containerwatch.config import get_settings

    s = get_settings()
    print(s.intervals.poll)
    print(s.runtime.listing_command)
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# ---------------------------------------------------------------------------
# Sub-models (each maps to a [section] in containerwatch.toml)
# ---------------------------------------------------------------------------


class _StrictModel(BaseModel):
    """Base for all config sub-models. Unknown keys are rejected so typos fail loudly."""

    model_config = {"extra": "forbid"}


class RuntimeConfig(_StrictModel):
    # Newer CLI builds accept "ls -a"; older ones only know "list"
    listing_command: Literal["ls -a", "list"] = "ls -a"
    # Status used when a table row has no status column
    missing_status: Literal["unknown", "running"] = "unknown"


class IntervalsConfig(_StrictModel):
    poll: float = 10.0  # seconds
    container_settle: float = 1.0  # seconds
    service_settle: float = 2.0  # seconds

    @field_validator("poll")
    @classmethod
    def validate_poll(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll interval must be positive")
        return v

    @field_validator("container_settle", "service_settle")
    @classmethod
    def validate_settle(cls, v: float) -> float:
        if v < 0:
            raise ValueError("settle delay cannot be negative")
        return v


class LoggingConfig(_StrictModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper()


# ---------------------------------------------------------------------------
# Root Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        toml_file="containerwatch.toml",
        env_file=".env",
        env_prefix="CONTAINERWATCH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    runtime: RuntimeConfig = RuntimeConfig()
    intervals: IntervalsConfig = IntervalsConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init > env vars > .env > containerwatch.toml > file secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Settings | None = None


def get_settings() -> Settings:
    """Lazy cached singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for tests)."""
    global _settings
    _settings = None
