"""
Utility modules for the upskills core.
"""

from .logger import (
    CollectionContextFilter,
    ContextAwareLogger,
    configure_logging,
    get_log_collection,
    get_logger,
    set_log_collection,
)
from .token_utils import generate_token, hash_token, parse_bearer_header, verify_token

__all__ = [
    "CollectionContextFilter",
    "ContextAwareLogger",
    "configure_logging",
    "get_log_collection",
    "get_logger",
    "set_log_collection",
    "generate_token",
    "hash_token",
    "parse_bearer_header",
    "verify_token",
]
