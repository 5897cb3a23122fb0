"""
Pydantic schemas for collections (tenants).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CollectionRead(BaseModel):
    """Collection row without its token digest."""

    id: str
    created_at: datetime
    last_used_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CollectionCreated(BaseModel):
    """Returned exactly once on creation; the token cannot be retrieved again."""

    token: str
    collection_id: str
    created_at: datetime

    def __repr__(self) -> str:
        return f"CollectionCreated(collection_id='{self.collection_id}', token='***')"
