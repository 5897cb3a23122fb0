"""
Centralized configuration management for the upskills core.

This module provides an immutable configuration snapshot with support for:
- Environment variables
- Resource ceilings for fetching and manifest validation
- The host allowlist used by admission control
- Validation using Pydantic

Database connection settings live in ``db.db_config`` next to the engine
manager that consumes them.
"""

import os
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    DEFAULT_ALLOWED_HOSTS,
    SKILL_MANIFEST_SUFFIX,
    EnvironmentVariable,
    Identifiers,
    Limits,
    LogLevel,
)


def _env_timeout_seconds() -> float:
    raw = os.getenv(EnvironmentVariable.FETCH_TIMEOUT_MS.value)
    if raw is None or raw == "":
        return Limits.FETCH_TIMEOUT_SECONDS
    return int(raw) / 1000.0


def _env_max_bytes() -> int:
    raw = os.getenv(EnvironmentVariable.MAX_SKILL_BYTES.value)
    if raw is None or raw == "":
        return Limits.MAX_SKILL_BYTES
    return int(raw)


def _env_allowed_hosts() -> Tuple[str, ...]:
    raw = os.getenv(EnvironmentVariable.ALLOWED_HOSTS.value, "")
    hosts = tuple(h.strip().lower() for h in raw.split(",") if h.strip())
    return hosts or DEFAULT_ALLOWED_HOSTS


class _FrozenConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class FetchConfig(_FrozenConfig):
    """Bounds applied to every outbound SKILL.md fetch."""

    timeout_seconds: float = Field(
        default_factory=_env_timeout_seconds,
        description="Wall-clock budget for connect + headers + body",
    )
    max_bytes: int = Field(
        default_factory=_env_max_bytes, description="Hard ceiling on response body size"
    )
    chunk_size: int = Field(default=Limits.FETCH_CHUNK_SIZE, description="Streaming read size")
    user_agent: str = Field(default="upskills-core/0.1", description="User-Agent header")

    @field_validator("timeout_seconds", "max_bytes", "chunk_size")
    @classmethod
    def validate_positive(cls, v):
        """Resource ceilings must never be unbounded or zero."""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v


class AdmissionConfig(_FrozenConfig):
    """Policy applied to source URLs before any network call."""

    max_url_length: int = Field(default=Limits.MAX_URL_LENGTH, gt=0)
    allowed_hosts: Tuple[str, ...] = Field(default_factory=_env_allowed_hosts)
    required_suffix: str = Field(default=SKILL_MANIFEST_SUFFIX)

    @field_validator("allowed_hosts")
    @classmethod
    def validate_hosts(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        """Normalize hostnames and refuse an empty allowlist."""
        hosts = tuple(h.strip().lower() for h in v if h and h.strip())
        if not hosts:
            raise ValueError("allowed_hosts must contain at least one host")
        return hosts


class ManifestConfig(_FrozenConfig):
    """Length ceilings for frontmatter fields."""

    max_name_length: int = Field(default=Limits.MAX_NAME_LENGTH, gt=0)
    max_description_length: int = Field(default=Limits.MAX_DESCRIPTION_LENGTH, gt=0)


class SecurityConfig(_FrozenConfig):
    """Token hashing configuration."""

    token_salt: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.TOKEN_SALT.value, "dev"),
        min_length=1,
        description="Process-wide salt mixed into every token digest",
    )
    token_prefix: str = Field(default=Identifiers.TOKEN_PREFIX)

    def __repr__(self) -> str:
        """String representation with masked salt."""
        return f"SecurityConfig(token_salt='***', token_prefix='{self.token_prefix}')"


class LoggingConfig(_FrozenConfig):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class AppConfig(_FrozenConfig):
    """Main application configuration, established once at startup."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    admission: AdmissionConfig = Field(default_factory=AdmissionConfig)
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


# Process-wide configuration snapshot
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
