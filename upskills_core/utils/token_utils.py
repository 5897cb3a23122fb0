"""
Bearer token generation and hashing.

Tokens are returned to the caller once and only their salted digest is ever
persisted.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from ..constants import Identifiers


def generate_token(prefix: str = Identifiers.TOKEN_PREFIX) -> str:
    """Return a new random bearer token, e.g. ``ups_<32 url-safe chars>``."""
    return f"{prefix}{secrets.token_urlsafe(Identifiers.TOKEN_RANDOM_BYTES)}"


def hash_token(salt: str, token: str) -> str:
    """Return the hex sha256 digest of ``"<salt>:<token>"``."""
    return hashlib.sha256(f"{salt}:{token}".encode("utf-8")).hexdigest()


def verify_token(salt: str, token: str, token_hash: str) -> bool:
    """Constant-time comparison of a token against a stored digest."""
    return hmac.compare_digest(hash_token(salt, token), token_hash)


def parse_bearer_header(header: Optional[str]) -> Optional[str]:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header value.

    The scheme is matched case-insensitively. Returns None when the header is
    absent, uses another scheme or carries an empty token.
    """
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
