"""
Pydantic schemas for skill pointers.

``SkillRead`` mirrors a full ledger row; ``SkillSummary`` and ``SkillDetail``
are the shapes handed to the boundary layer for list/search and get.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SkillRegistration(BaseModel):
    """Validated input for ``SkillLedgerService.register``."""

    source_url: str = Field(min_length=1)
    alias: Optional[str] = None
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    etag: Optional[str] = None
    content: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class SkillRead(BaseModel):
    """Full ledger row."""

    id: str
    collection_id: str
    source_url: str
    alias: Optional[str] = None
    name: str
    description: str
    created_at: datetime
    last_etag: Optional[str] = None
    last_content: Optional[str] = None
    last_fetched_at: Optional[datetime] = None
    last_fetch_status: Optional[int] = None
    last_fetch_error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SkillSummary(BaseModel):
    """Item shape for registration, list and search responses."""

    id: str
    source_url: str
    alias: Optional[str] = None
    name: str
    description: str
    created_at: datetime

    @classmethod
    def from_read(cls, row: SkillRead) -> "SkillSummary":
        return cls(
            id=row.id,
            source_url=row.source_url,
            alias=row.alias,
            name=row.name,
            description=row.description,
            created_at=row.created_at,
        )


class SkillDetail(BaseModel):
    """Shape returned by a revalidating get: metadata plus cached content."""

    id: str
    source_url: str
    alias: Optional[str] = None
    name: str
    description: str
    etag: Optional[str] = None
    fetched_at: Optional[datetime] = None
    fetch_status: Optional[int] = None
    fetch_error: Optional[str] = None
    content: str

    @classmethod
    def from_read(cls, row: SkillRead) -> "SkillDetail":
        return cls(
            id=row.id,
            source_url=row.source_url,
            alias=row.alias,
            name=row.name,
            description=row.description,
            etag=row.last_etag,
            fetched_at=row.last_fetched_at,
            fetch_status=row.last_fetch_status,
            fetch_error=row.last_fetch_error,
            content=row.last_content or "",
        )


class SkillList(BaseModel):
    items: List[SkillSummary] = Field(default_factory=list)
