"""
Operation context for handling cross-cutting concerns.

This module provides context management for operations: entry/exit logging,
correlation ids, duration measurement and error enrichment.
"""

import time
import uuid
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, Union, cast

from ..exceptions import (
    BaseError,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from ..utils.logger import ContextAwareLogger, get_logger


class OperationContext:
    """Context for a specific operation."""

    def __init__(self, operation_name: str, correlation_id: Optional[str] = None, **context):
        self.operation_name = operation_name
        self.operation_id = str(uuid.uuid4())

        # Nested operations inherit the outermost correlation id
        self.owns_correlation_id = correlation_id is None and get_correlation_id() is None
        self.correlation_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)

        self.context = context
        self.context["operation_id"] = self.operation_id
        self.context["correlation_id"] = self.correlation_id

        self.start_time = time.monotonic()
        self.metrics: Dict[str, Union[int, float]] = {}

    @property
    def duration_ms(self) -> float:
        """Get the operation duration in milliseconds."""
        return (time.monotonic() - self.start_time) * 1000

    def add_context(self, **kwargs) -> None:
        """Add additional context information."""
        self.context.update(kwargs)

    def add_metric(self, name: str, value: Union[int, float]) -> None:
        """Add a metric to the operation context."""
        self.metrics[name] = value


class OperationHandler:
    """Handles operation logging and error enrichment."""

    def __init__(self, logger: Optional[ContextAwareLogger] = None):
        self.logger = logger if logger is not None else get_logger()

    @contextmanager
    def operation(self, name: str, **context):
        """Context manager for operations."""
        op_ctx = OperationContext(name, **context)
        ids = {"operation_id": op_ctx.operation_id, "correlation_id": op_ctx.correlation_id}

        self.logger.debug(f"ENTER: {name}", extra={**context, **ids})

        try:
            yield op_ctx

            self.logger.info(
                f"EXIT: {name}",
                extra={
                    **context,
                    **ids,
                    "duration_ms": round(op_ctx.duration_ms, 2),
                    "status": "success",
                    **op_ctx.metrics,
                },
            )

        except BaseError as e:
            # BaseError already logged itself; add where it happened
            e.add_context(
                operation_name=name,
                operation_id=op_ctx.operation_id,
                operation_duration_ms=op_ctx.duration_ms,
            )
            self.logger.info(
                f"FAILED: {name} -> {e.kind}",
                extra={
                    **context,
                    **ids,
                    "duration_ms": round(op_ctx.duration_ms, 2),
                    "error_id": e.error_id,
                    "status": "error",
                },
            )
            raise

        except Exception as e:
            self.logger.exception(
                f"ERROR: {name} -> {type(e).__name__}",
                extra={
                    **context,
                    **ids,
                    "duration_ms": round(op_ctx.duration_ms, 2),
                    "error_type": type(e).__name__,
                    "status": "error",
                },
            )
            raise

        finally:
            if op_ctx.owns_correlation_id:
                clear_correlation_id()


F = TypeVar("F", bound=Callable[..., Any])


def operation(name: Union[Optional[str], Callable] = None):
    """
    Decorator for operations.

    Arguments are deliberately not logged: they may carry bearer tokens or
    whole SKILL.md bodies.

    Args:
        name: Optional operation name. If not provided, a name will be generated
             from class and function information.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            if name is not None:
                op_name = name
            else:
                op_name = func.__name__
                if args and hasattr(args[0], func.__name__):
                    op_name = f"{args[0].__class__.__name__}.{op_name}"

            context: Dict[str, Any] = {"source_module": func.__module__}
            handler = OperationHandler()
            with handler.operation(op_name, **context):
                return func(*args, **kwargs)

        return cast(F, wrapper)

    # Handle case where decorator is used without parentheses
    if callable(name):
        func, name = name, None
        return decorator(func)

    return decorator
