"""
Explicit handles shared by the ingestion pipeline.

A PipelineContext is built once at start-up and passed to the orchestrator
and the API facade; nothing in the pipeline reaches for a module-level
database manager or HTTP client.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from ..config import AppConfig, get_config
from ..db.db_config import DatabaseConfig, DatabaseManager, init_db
from ..ingestion.fetcher import BoundedFetcher
from ..services.collection_service import CollectionService
from ..services.skill_ledger_service import SkillLedgerService
from ..utils.logger import get_log_collection, set_log_collection


@dataclass(frozen=True)
class PipelineContext:
    config: AppConfig
    db_manager: DatabaseManager
    fetcher: BoundedFetcher

    @classmethod
    def create(
        cls,
        config: Optional[AppConfig] = None,
        db_config: Optional[DatabaseConfig] = None,
        db_manager: Optional[DatabaseManager] = None,
        http_session: Optional[Any] = None,
    ) -> "PipelineContext":
        """
        Build a context from configuration.

        Args:
            config: Application configuration (default: the process snapshot)
            db_config: Database configuration used when no manager is given
            db_manager: Existing manager, e.g. shared with tests
            http_session: requests-compatible session for the fetcher
        """
        config = config or get_config()
        manager = db_manager or init_db(db_config)
        return cls(
            config=config,
            db_manager=manager,
            fetcher=BoundedFetcher(http_session, config.fetch),
        )

    def ledger(self) -> SkillLedgerService:
        """A ledger service owning a fresh session; close it when done."""
        return SkillLedgerService(db_manager=self.db_manager)

    def collections(self) -> CollectionService:
        """A collection service owning a fresh session; close it when done."""
        return CollectionService(security=self.config.security, db_manager=self.db_manager)

    def close(self) -> None:
        self.fetcher.close()
        self.db_manager.close()


@contextmanager
def collection_scope(collection_id: str) -> Iterator[str]:
    """
    Stamp ``collection_id`` on every log record emitted inside the block.

    Restores the previously active collection on exit.
    """
    previous = get_log_collection()
    set_log_collection(collection_id)
    try:
        yield collection_id
    finally:
        set_log_collection(previous)
