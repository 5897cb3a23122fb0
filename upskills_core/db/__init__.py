"""
SQLAlchemy models and database configuration for upskills.

This module provides a common entry point for all models.
"""

from .db_base import CreatedAtMixin, generate_id, utc_now
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    get_development_config,
    get_sqlite_config,
    import_all_models,
    init_db,
)
from .db_collection_models import Collection
from .db_skill_models import Skill

__all__ = [
    # Base definitions
    "Base",
    "CreatedAtMixin",
    "generate_id",
    "utc_now",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "import_all_models",
    "init_db",
    "get_development_config",
    "get_sqlite_config",
    # Models
    "Collection",
    "Skill",
]
