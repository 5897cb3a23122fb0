"""
Base service implementation with common functionality for all services.

This module provides a base class with shared session handling and error
wrapping so that ledger and collection services stay small.
"""

from contextlib import contextmanager
from typing import Iterator, NoReturn, Optional

from sqlalchemy.orm import Session

from ..db.db_config import DatabaseManager
from ..exceptions import BaseError, ErrorCode, ServiceError
from ..utils.logger import ContextAwareLogger, get_logger


class SessionManagedService:
    """
    Service that either borrows a session or owns one opened from a DatabaseManager.

    A borrowed session is never committed, rolled back or closed here; the
    caller that handed it over manages its transaction.
    """

    def __init__(
        self,
        session: Optional[Session] = None,
        db_manager: Optional[DatabaseManager] = None,
        logger: Optional[ContextAwareLogger] = None,
    ):
        """
        Initialize service with a session.

        Args:
            session: Optional existing session (for testing or coordination)
            db_manager: Manager to open an owned session from when no session is given
            logger: Optional logger instance
        """
        if session is not None:
            self.session = session
            self._owns_session = False
        elif db_manager is not None:
            self.session = db_manager.get_session()
            self._owns_session = True
        else:
            raise ServiceError(
                "A session or a database manager is required",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                operation=f"{type(self).__name__}.__init__",
            )
        self.logger = logger or get_logger()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for transactional operations.

        Usage:
            with service.transaction() as session:
                ...
                # Auto-commits on success, rollback on exception
        """
        try:
            yield self.session
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        """Commit the current transaction if we own the session."""
        if self._owns_session:
            self.session.commit()

    def rollback(self) -> None:
        """Rollback the current transaction if we own the session."""
        if self._owns_session:
            self.session.rollback()

    def close(self) -> None:
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        else:
            self.commit()
        self.close()

    def _handle_service_exception(
        self, operation: str, exception: Exception, entity_id: Optional[str] = None
    ) -> NoReturn:
        """
        Re-raise library errors untouched and wrap anything else in ServiceError.

        The wrapped message is generic; engine text only travels on ``cause``.
        """
        if isinstance(exception, BaseError):
            raise exception

        self.logger.error(
            f"Error in {operation}",
            extra={
                "operation": operation,
                "entity_id": entity_id,
                "error_type": type(exception).__name__,
            },
            exc_info=True,
        )
        raise ServiceError(
            f"{operation} failed",
            error_code=ErrorCode.INTERNAL_ERROR,
            operation=operation,
            entity_id=entity_id,
            cause=exception,
        ) from exception
