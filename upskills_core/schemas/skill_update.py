"""
Partial-update value applied by ``SkillLedgerService.reconcile``.

Each field is either ``UNCHANGED`` or ``SetTo(value)``; ``SetTo(None)`` really
writes NULL. The named constructors encode the last-known-good rules:
content, etag, name and description are only ever written together by a
successful 200 fetch.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from ..constants import FetchStatus
from ..db.db_base import utc_now

T = TypeVar("T")


class _Unchanged:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"

    def __bool__(self) -> bool:
        return False


UNCHANGED = _Unchanged()


@dataclass(frozen=True)
class SetTo(Generic[T]):
    value: T


FieldUpdate = Union[_Unchanged, SetTo[T]]


@dataclass(frozen=True)
class SkillFetchUpdate:
    """Column-level patch for the ``last_*``, ``name`` and ``description`` fields."""

    last_etag: FieldUpdate[Optional[str]] = UNCHANGED
    last_content: FieldUpdate[str] = UNCHANGED
    last_fetched_at: FieldUpdate[datetime] = UNCHANGED
    last_fetch_status: FieldUpdate[Optional[int]] = UNCHANGED
    last_fetch_error: FieldUpdate[Optional[str]] = UNCHANGED
    name: FieldUpdate[str] = UNCHANGED
    description: FieldUpdate[str] = UNCHANGED

    @classmethod
    def fresh(
        cls,
        etag: Optional[str],
        content: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        error: Optional[str] = None,
        fetched_at: Optional[datetime] = None,
    ) -> "SkillFetchUpdate":
        """
        A 200 response. Name and description are only written when the new
        content produced them (pass None to keep the stored values).
        """
        return cls(
            last_etag=SetTo(etag),
            last_content=SetTo(content),
            last_fetched_at=SetTo(fetched_at or utc_now()),
            last_fetch_status=SetTo(FetchStatus.OK),
            last_fetch_error=SetTo(error),
            name=SetTo(name) if name is not None else UNCHANGED,
            description=SetTo(description) if description is not None else UNCHANGED,
        )

    @classmethod
    def not_modified(cls, fetched_at: Optional[datetime] = None) -> "SkillFetchUpdate":
        """A 304 response: the cached etag/content pair stays as it is."""
        return cls(
            last_fetched_at=SetTo(fetched_at or utc_now()),
            last_fetch_status=SetTo(FetchStatus.NOT_MODIFIED),
            last_fetch_error=SetTo(None),
        )

    @classmethod
    def failed(cls, message: str, status: int = FetchStatus.UPSTREAM_FAILED) -> "SkillFetchUpdate":
        """A failed attempt: only the bookkeeping of the last attempt changes."""
        return cls(
            last_fetch_status=SetTo(status),
            last_fetch_error=SetTo(message),
        )

    def to_values(self) -> Dict[str, Any]:
        """Column name -> value for every field that is not UNCHANGED."""
        values: Dict[str, Any] = {}
        for f in fields(self):
            update = getattr(self, f.name)
            if isinstance(update, SetTo):
                values[f.name] = update.value
        return values

    @property
    def touches_content(self) -> bool:
        return isinstance(self.last_content, SetTo)
