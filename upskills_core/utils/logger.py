"""
Console logging for the upskills core.

This module provides:
1. ContextAwareLogger, which renders ``extra`` attributes as pipe-delimited
   ``key=value`` pairs so they survive hosts that override formatters
2. CollectionContextFilter, which stamps the active collection id on records
3. configure_logging / get_logger helpers used by every module
"""

import logging
import sys
import threading
from typing import Optional, Union

from ..config import get_config

_function_logger = None
_log_context = threading.local()

# Extras that must never reach a log line
_REDACTED_KEYS = frozenset({"token", "authorization", "token_salt"})


class ContextAwareLogger:
    """
    Logger wrapper that formats extra attributes in message while preserving them.
    """

    def __init__(self, logger):
        """Initialize with an existing logger."""
        self.logger = logger

    def _log_with_formatted_extra(self, level, msg, **kwargs):
        """
        Log with extra data formatted into the message.

        Args:
            level: Logging level method to use
            msg: Log message
            **kwargs: Additional arguments including 'extra' and 'exc_info'
        """
        extra = {
            k: ("***" if k in _REDACTED_KEYS else v)
            for k, v in (kwargs.pop("extra", None) or {}).items()
        }

        if extra:
            extra_str = " | ".join([f"{k}={v}" for k, v in extra.items()])
            full_msg = f"{msg} | {extra_str}"
        else:
            full_msg = msg

        # LogRecord reserves some attribute names; prefix them instead of crashing
        safe_extra = {
            (f"ctx_{k}" if k in _RESERVED_RECORD_ATTRS else k): v for k, v in extra.items()
        }
        log_method = getattr(self.logger, level)
        log_method(full_msg, extra=safe_extra, **kwargs)

    def set_level(self, level):
        """Set the logging level of the underlying logger."""
        self.logger.setLevel(level)

    def info(self, msg, **kwargs):
        """Log at INFO level with formatted extra."""
        self._log_with_formatted_extra("info", msg, **kwargs)

    def error(self, msg, **kwargs):
        """Log at ERROR level with formatted extra."""
        self._log_with_formatted_extra("error", msg, **kwargs)

    def warning(self, msg, **kwargs):
        """Log at WARNING level with formatted extra."""
        self._log_with_formatted_extra("warning", msg, **kwargs)

    def debug(self, msg, **kwargs):
        """Log at DEBUG level with formatted extra."""
        self._log_with_formatted_extra("debug", msg, **kwargs)

    def exception(self, msg, **kwargs):
        """Log exception with formatted extra."""
        self._log_with_formatted_extra("exception", msg, **kwargs)


_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def set_log_collection(collection_id: Optional[str]) -> None:
    """Set (or clear, with None) the collection id stamped on this thread's records."""
    if collection_id:
        _log_context.collection_id = collection_id
    elif hasattr(_log_context, "collection_id"):
        delattr(_log_context, "collection_id")


def get_log_collection() -> Optional[str]:
    """Collection id currently stamped on this thread's records."""
    return getattr(_log_context, "collection_id", None)


class CollectionContextFilter(logging.Filter):
    """
    Logging filter that adds the active collection id to log records.
    """

    def filter(self, record):
        """
        Add collection_id to the log record if one is active on this thread.

        Args:
            record: LogRecord to modify

        Returns:
            True to include the record in the log output
        """
        collection_id = get_log_collection()
        if collection_id and not hasattr(record, "collection_id"):
            record.collection_id = collection_id
        return True


def configure_logging(
    function_name: str,
    log_level: Optional[Union[int, str]] = None,
) -> "ContextAwareLogger":
    """
    Configure console logging for a named component.

    Args:
        function_name: Name of the component (e.g. "skills-api")
        log_level: Logging level (default: from configuration)

    Returns:
        The configured logger wrapped with ContextAwareLogger
    """
    global _function_logger

    app_config = get_config()

    if log_level is None:
        log_level = app_config.logging.level

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(f"upskills.{function_name}")
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(app_config.logging.format))
    console_handler.addFilter(CollectionContextFilter())
    logger.addHandler(console_handler)

    wrapped_logger = ContextAwareLogger(logger)
    wrapped_logger.info("Logger configured", extra={"function_name": function_name})
    _function_logger = wrapped_logger
    return wrapped_logger


def get_logger(
    log_level: Optional[Union[int, str]] = None,
) -> "ContextAwareLogger":
    """
    Get the component logger.

    Args:
        log_level: Optional log level to set

    Returns:
        Logger instance
    """
    if _function_logger is not None:
        return _function_logger

    logger = logging.getLogger("upskills")

    if log_level is None:
        log_level = get_config().logging.level

    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    return ContextAwareLogger(logger)
