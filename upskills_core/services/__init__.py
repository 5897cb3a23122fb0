"""
Service layer for the upskills core.
"""

from .base_service import SessionManagedService
from .collection_service import CollectionService
from .skill_ledger_service import SkillLedgerService

__all__ = [
    "SessionManagedService",
    "CollectionService",
    "SkillLedgerService",
]
