"""
Constants and enums for the upskills core.

This module centralizes magic strings and default limits so that the
configuration layer, the ingestion pipeline and the tests agree on them.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    DB_PATH = "UP_SKILLS_DB_PATH"
    TOKEN_SALT = "UP_SKILLS_TOKEN_SALT"
    FETCH_TIMEOUT_MS = "UP_SKILLS_FETCH_TIMEOUT_MS"
    MAX_SKILL_BYTES = "UP_SKILLS_MAX_SKILL_BYTES"
    ALLOWED_HOSTS = "UP_SKILLS_ALLOWED_HOSTS"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"


class LogContextKey(str, Enum):
    """Standard keys for logging context."""

    OPERATION_ID = "operation_id"
    CORRELATION_ID = "correlation_id"
    COLLECTION_ID = "collection_id"
    SKILL_ID = "skill_id"
    DURATION_MS = "duration_ms"
    STATUS = "status"


class FetchStatus:
    """Values stored in ``skills.last_fetch_status``."""

    OK = 200
    NOT_MODIFIED = 304
    UPSTREAM_FAILED = 502


class Limits:
    """Default resource ceilings."""

    FETCH_TIMEOUT_SECONDS = 5.0
    MAX_SKILL_BYTES = 256 * 1024
    FETCH_CHUNK_SIZE = 8192
    MAX_URL_LENGTH = 2048
    MAX_NAME_LENGTH = 64
    MAX_DESCRIPTION_LENGTH = 1024


class Identifiers:
    """Prefixes and sizes for generated identifiers and tokens."""

    COLLECTION_PREFIX = "col_"
    SKILL_PREFIX = "sk_"
    TOKEN_PREFIX = "ups_"
    ID_RANDOM_BYTES = 12
    TOKEN_RANDOM_BYTES = 24


DEFAULT_ALLOWED_HOSTS = ("raw.githubusercontent.com",)
SKILL_MANIFEST_SUFFIX = "/SKILL.md"
FRONTMATTER_DELIMITER = "---"
