"""
Skill pointer model.

One row per registered SKILL.md URL per collection. Registration fields are
written once; the ``last_*`` fields cache the most recent fetch result and are
only changed through ``SkillLedgerService.reconcile``.
"""

from functools import partial

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..constants import Identifiers, Limits
from .db_base import CreatedAtMixin, generate_id
from .db_config import Base


class Skill(Base, CreatedAtMixin):
    """Tenant-owned pointer to a remote SKILL.md plus its last known good content."""

    __tablename__ = "skills"

    id = Column(
        String(40),
        primary_key=True,
        default=partial(generate_id, Identifiers.SKILL_PREFIX, Identifiers.ID_RANDOM_BYTES),
    )
    collection_id = Column(
        String(40), ForeignKey("collections.id", ondelete="CASCADE"), nullable=False
    )

    # Registration identity
    source_url = Column(String(Limits.MAX_URL_LENGTH), nullable=False)
    alias = Column(String(200), nullable=True)

    # Derived from the manifest
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    # Fetch cache
    last_etag = Column(String(512), nullable=True)
    last_content = Column(Text, nullable=True)
    last_fetched_at = Column(DateTime(timezone=True), nullable=True)
    last_fetch_status = Column(Integer, nullable=True)
    last_fetch_error = Column(Text, nullable=True)

    collection = relationship("Collection", back_populates="skills")

    __table_args__ = (
        UniqueConstraint("collection_id", "source_url", name="uq_skills_collection_source_url"),
        # NULL aliases never collide with each other
        UniqueConstraint("collection_id", "alias", name="uq_skills_collection_alias"),
        Index("ix_skills_collection_created", "collection_id", "created_at"),
    )
