"""
Shared column helpers for the upskills models.

Plain column types only; identifiers are opaque prefixed strings rather than UUIDs.
"""

import secrets
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime


def utc_now():
    """Return current UTC time with timezone info attached."""
    return datetime.now(UTC)


def generate_id(prefix: str, num_bytes: int = 12) -> str:
    """Return ``prefix`` followed by ``num_bytes`` of url-safe randomness."""
    return f"{prefix}{secrets.token_urlsafe(num_bytes)}"


class CreatedAtMixin:
    """Simple mixin for an immutable creation timestamp."""

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
