"""
Generic CRUD helpers scoped by collection.

These functions work with any model that has an ``id`` column and, when the
model has a ``collection_id`` column and a collection id is supplied, filter
every read and write by it so that rows of another collection are invisible.

Helpers flush but never commit: the caller's unit of work decides.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..exceptions import RepositoryError
from ..utils.logger import get_logger

T = TypeVar("T")


def _scoped_query(session: Session, model_class: Type[T], collection_id: Optional[str]) -> Query:
    query = session.query(model_class)
    if collection_id and hasattr(model_class, "collection_id"):
        query = query.filter(model_class.collection_id == collection_id)  # type: ignore[attr-defined]
    return query


def _storage_error(action: str, model_class: Type, e: Exception, **context) -> RepositoryError:
    # Engine text stays in the cause for logs only
    return RepositoryError(
        f"Failed to {action} {model_class.__name__.lower()}",
        cause=e,
        model=model_class.__name__,
        **context,
    )


def create_record(
    session: Session,
    model_class: Type[T],
    data: Dict[str, Any],
    collection_id: Optional[str] = None,
) -> T:
    """
    Generic create operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        data: Column values
        collection_id: Optional owning collection, added when the model has the column

    Returns:
        Created (flushed) record instance

    Raises:
        IntegrityError: Propagated untouched so callers can map uniqueness violations
        RepositoryError: For any other storage failure
    """
    logger = get_logger()

    if collection_id and hasattr(model_class, "collection_id") and "collection_id" not in data:
        data = {**data, "collection_id": collection_id}

    record = model_class(**data)
    session.add(record)
    try:
        session.flush()
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        raise _storage_error("create", model_class, e, collection_id=collection_id) from e

    logger.debug(
        f"Created {model_class.__name__}",
        extra={
            "model": model_class.__name__,
            "record_id": getattr(record, "id", None),
            "collection_id": collection_id,
        },
    )
    return record


def get_record(
    session: Session,
    model_class: Type[T],
    filters: Dict[str, Any],
    collection_id: Optional[str] = None,
) -> Optional[T]:
    """
    Generic get operation for any model.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        filters: Equality filter conditions; None values are ignored
        collection_id: Optional collection scope

    Returns:
        Record instance or None
    """
    query = _scoped_query(session, model_class, collection_id)
    for key, value in filters.items():
        if hasattr(model_class, key) and value is not None:
            query = query.filter(getattr(model_class, key) == value)
    return query.first()


def get_record_by_id(
    session: Session, model_class: Type[T], record_id: str, collection_id: Optional[str] = None
) -> Optional[T]:
    """Generic get by ID operation."""
    return get_record(session, model_class, {"id": record_id}, collection_id)


def record_exists(
    session: Session,
    model_class: Type[T],
    filters: Dict[str, Any],
    collection_id: Optional[str] = None,
) -> bool:
    """Check if a record exists with the given filters."""
    return get_record(session, model_class, filters, collection_id) is not None


def list_records(
    session: Session,
    model_class: Type[T],
    collection_id: Optional[str] = None,
    criteria: Optional[List[Any]] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> List[T]:
    """
    Generic list operation, newest first when the model has ``created_at``.

    Args:
        session: Database session
        model_class: SQLAlchemy model class
        collection_id: Optional collection scope
        criteria: Optional SQLAlchemy filter expressions
        limit: Optional limit
        offset: Optional offset

    Returns:
        List of record instances
    """
    query = _scoped_query(session, model_class, collection_id)
    for criterion in criteria or []:
        query = query.filter(criterion)

    if hasattr(model_class, "created_at"):
        query = query.order_by(model_class.created_at.desc())  # type: ignore[attr-defined]

    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)

    return query.all()


def update_record_values(
    session: Session,
    model_class: Type[T],
    record_id: str,
    values: Dict[str, Any],
    collection_id: Optional[str] = None,
) -> int:
    """
    Apply ``values`` to one row with a single UPDATE statement.

    Every value in ``values`` is written, including None.

    Returns:
        Number of rows matched (0 or 1)
    """
    stmt = update(model_class).where(model_class.id == record_id)  # type: ignore[attr-defined]
    if collection_id and hasattr(model_class, "collection_id"):
        stmt = stmt.where(model_class.collection_id == collection_id)  # type: ignore[attr-defined]
    stmt = stmt.values(**values).execution_options(synchronize_session=False)

    try:
        result = session.execute(stmt)
    except SQLAlchemyError as e:
        raise _storage_error(
            "update", model_class, e, record_id=record_id, collection_id=collection_id
        ) from e
    return result.rowcount


def delete_record(
    session: Session, model_class: Type[T], record_id: str, collection_id: Optional[str] = None
) -> bool:
    """
    Generic delete operation for any model.

    Returns:
        True if deleted, False if no row matched under the given scope
    """
    logger = get_logger()

    record = get_record_by_id(session, model_class, record_id, collection_id)
    if not record:
        return False

    try:
        session.delete(record)
        session.flush()
    except SQLAlchemyError as e:
        raise _storage_error(
            "delete", model_class, e, record_id=record_id, collection_id=collection_id
        ) from e

    logger.debug(
        f"Deleted {model_class.__name__}",
        extra={"model": model_class.__name__, "record_id": record_id, "collection_id": collection_id},
    )
    return True
