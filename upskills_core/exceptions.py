"""
Consolidated exception system with error codes, stable kinds, and correlation support.

Every error raised by the library derives from BaseError. Each error carries:
- a numeric ErrorCode category (for logs and dashboards)
- a stable machine-readable ``kind`` (e.g. ``host_not_allowed``) surfaced at the boundary
- the HTTP status the boundary layer should answer with
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error code categories."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONNECTION_ERROR = "1002"
    CONFIGURATION_ERROR = "1003"
    TIMEOUT_ERROR = "1004"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    TYPE_MISMATCH = "2003"
    CONSTRAINT_VIOLATION = "2004"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"
    LIMIT_EXCEEDED = "3005"

    # Business logic errors (4xxx)
    PERMISSION_DENIED = "4003"
    PRECONDITION_FAILED = "4004"

    # External service errors (5xxx)
    EXTERNAL_API_ERROR = "5002"
    DOWNSTREAM_ERROR = "5004"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    default_kind = "internal_error"

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        kind: Optional[str] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message, safe to show at the boundary
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            kind: Stable machine-readable error kind
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.kind = kind or self.default_kind
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Imported lazily: the logger module reads configuration at import time
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "error_kind": self.kind,
            "status_code": self.status_code,
            "error_message": self.message,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if self.status_code >= 500:
            logger.error(f"Error {self.kind}: {self.message}", extra=log_data)
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.kind}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.kind}: {self.message}", extra=log_data)

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """
        Convert to dict for API responses.

        The ``code`` field is the stable kind; engine-level cause text is only
        included when explicitly requested (debug tooling, never the boundary).
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "code": self.kind,
                "category": self.error_code.value,
                "message": self.message,
                "timestamp": self.timestamp,
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """Add additional context to the error (fluent interface)."""
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


# Layer-specific base exceptions
class RepositoryError(BaseError):
    """Repository layer errors."""

    default_kind = "storage_error"

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        kind: Optional[str] = None,
        **context,
    ):
        """Initialize repository error with database context."""
        super().__init__(message, error_code, status_code, cause, kind, **context)


class ServiceError(BaseError):
    """Service layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        kind: Optional[str] = None,
        **context,
    ):
        """Initialize service error with operation context."""
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, kind, **context)


class ValidationError(BaseError):
    """Validation errors."""

    default_kind = "validation_failed"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        status_code: int = 400,
        cause: Optional[Exception] = None,
        kind: Optional[str] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        super().__init__(message, error_code, status_code, cause, kind, **context)


class ExternalServiceError(BaseError):
    """External service integration errors."""

    default_kind = "upstream_fetch_failed"

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_API_ERROR,
        cause: Optional[Exception] = None,
        kind: Optional[str] = None,
        **context,
    ):
        """Initialize external service error with service context."""
        context["service_name"] = service_name
        super().__init__(message, error_code, 502, cause, kind, **context)


# ==================== REQUEST / PIPELINE EXCEPTIONS ====================


class RequestValidationError(ValidationError):
    """Raised when a request payload does not match the expected shape."""

    default_kind = "invalid_request"

    def __init__(self, kind: str, message: str, status_code: int = 422, **kwargs):
        super().__init__(message, kind=kind, status_code=status_code, **kwargs)


class AdmissionError(ValidationError):
    """Raised when a source URL fails admission control; never touches the network."""

    default_kind = "invalid_url"

    def __init__(self, kind: str, message: str, **kwargs):
        super().__init__(
            message,
            field="source_url",
            error_code=ErrorCode.INVALID_FORMAT,
            status_code=422,
            kind=kind,
            **kwargs,
        )


class ManifestError(ValidationError):
    """Raised when SKILL.md frontmatter is missing or invalid."""

    default_kind = "invalid_skill_md"

    def __init__(self, kind: str, message: str, **kwargs):
        super().__init__(
            message,
            field="frontmatter",
            error_code=ErrorCode.CONSTRAINT_VIOLATION,
            status_code=422,
            kind=kind,
            **kwargs,
        )


class FetchError(ExternalServiceError):
    """
    Raised by the bounded fetcher.

    ``kind`` identifies the failure (``timeout``, ``redirect_not_allowed``,
    ``response_too_large``, ``upstream_status_<code>``, ``connection_error``);
    ``upstream_status`` holds the origin's numeric status when there was one.
    """

    default_kind = "fetch_failed"

    def __init__(
        self,
        kind: str,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        cause: Optional[Exception] = None,
        **kwargs,
    ):
        self.upstream_status = upstream_status
        error_code = ErrorCode.TIMEOUT_ERROR if kind == "timeout" else ErrorCode.EXTERNAL_API_ERROR
        if upstream_status is not None:
            kwargs["upstream_status"] = upstream_status
        super().__init__(
            message or kind,
            service_name="skill_origin",
            error_code=error_code,
            cause=cause,
            kind=kind,
            **kwargs,
        )


class UpstreamFetchError(ExternalServiceError):
    """Boundary-facing wrapper for any FetchError."""

    def __init__(self, message: str, cause: Optional[Exception] = None, **kwargs):
        super().__init__(
            message,
            service_name="skill_origin",
            error_code=ErrorCode.DOWNSTREAM_ERROR,
            cause=cause,
            kind="upstream_fetch_failed",
            **kwargs,
        )


class CacheMissError(BaseError):
    """Raised when the origin answers 304 but no content was ever cached."""

    default_kind = "cache_miss"

    def __init__(self, message: str = "upstream returned 304 but no cached content", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.PRECONDITION_FAILED,
            status_code=502,
            **kwargs,
        )


class NotFoundError(RepositoryError):
    """Raised when a tenant-scoped resource does not exist (or belongs to another tenant)."""

    default_kind = "not_found"

    def __init__(self, message: str = "not found", **kwargs):
        super().__init__(message, error_code=ErrorCode.NOT_FOUND, status_code=404, **kwargs)


class ConflictError(RepositoryError):
    """Raised when a uniqueness invariant would be violated."""

    default_kind = "conflict"

    def __init__(self, message: str = "conflict", **kwargs):
        super().__init__(message, error_code=ErrorCode.DUPLICATE, status_code=409, **kwargs)


class UnauthorizedError(BaseError):
    """Raised when a bearer token is missing or does not match a collection."""

    default_kind = "unauthorized"

    def __init__(self, message: str = "invalid token", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.PERMISSION_DENIED, status_code=401, **kwargs
        )


# Factory functions for common error patterns
def not_found(
    resource_type: str, cause: Optional[Exception] = None, **identifiers
) -> NotFoundError:
    """
    Factory for not found errors.

    Args:
        resource_type: Type of resource (e.g., 'Skill', 'Collection')
        cause: Original exception if any
        **identifiers: Resource identifiers kept in the log context only

    Returns:
        Configured NotFoundError instance with 404 status
    """
    return NotFoundError(
        f"{resource_type.lower()} not found",
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


def duplicate(
    resource_type: str, reason: str, cause: Optional[Exception] = None, **identifiers
) -> ConflictError:
    """
    Factory for uniqueness violations.

    Args:
        resource_type: Type of resource (e.g., 'Skill')
        reason: Stable, engine-independent description of the collision
        cause: Original exception if any (kept for logs, never surfaced)
        **identifiers: Resource identifiers

    Returns:
        Configured ConflictError instance with 409 status
    """
    return ConflictError(
        f"{resource_type.lower()} already exists: {reason}",
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the current thread's correlation ID."""
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    """Clear the current thread's correlation ID."""
    if hasattr(_thread_local, "correlation_id"):
        delattr(_thread_local, "correlation_id")
