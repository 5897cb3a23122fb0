"""
Collection (tenant) model.

Just the data structure - token issuance and lookup live in
``services.collection_service``.
"""

from functools import partial

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from ..constants import Identifiers
from .db_base import CreatedAtMixin, generate_id
from .db_config import Base


class Collection(Base, CreatedAtMixin):
    """A tenant: owns skills, authenticated by a salted token digest."""

    __tablename__ = "collections"

    id = Column(
        String(40),
        primary_key=True,
        default=partial(generate_id, Identifiers.COLLECTION_PREFIX, Identifiers.ID_RANDOM_BYTES),
    )
    # sha256 hex of "<salt>:<token>"; the raw token is never stored
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    skills = relationship(
        "Skill",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
