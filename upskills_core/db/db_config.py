import os
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..constants import EnvironmentVariable
from ..utils.logger import get_logger

# Base class for all SQLAlchemy models
Base: Any = declarative_base()

IN_MEMORY = ":memory:"


class DatabaseConfig(BaseModel):
    """SQLite database location; ``:memory:`` for tests and development."""

    database: str = Field(min_length=1)
    echo: bool = False

    model_config = ConfigDict(frozen=True)

    def get_connection_string(self) -> str:
        return f"sqlite:///{self.database}"

    @property
    def in_memory(self) -> bool:
        return self.database == IN_MEMORY


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """
    Database connection manager that uses a Pydantic DatabaseConfig.

    The manager is the only storage handle the pipeline holds; every unit of
    work opens its own short-lived session from ``session_factory``.
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _create_engine(self):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if self.config.in_memory:
            # One shared connection, otherwise each session sees an empty database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(self.config.get_connection_string(), echo=self.config.echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.session_factory()

    def close(self) -> None:
        self.engine.dispose()


def _echo_from_env() -> bool:
    return os.environ.get("DB_ECHO", "False").lower() == "true"


def get_development_config() -> DatabaseConfig:
    """
    Get in-memory SQLite configuration for development and tests.
    """
    return DatabaseConfig(database=IN_MEMORY, echo=_echo_from_env())


def get_sqlite_config() -> DatabaseConfig:
    """
    Get file-backed SQLite configuration from the environment.
    """
    return DatabaseConfig(
        database=os.environ.get(EnvironmentVariable.DB_PATH.value, "./up-skills.sqlite"),
        echo=_echo_from_env(),
    )


def import_all_models():
    """Import all models to ensure they're registered with SQLAlchemy metadata."""
    from sqlalchemy.orm import configure_mappers

    from .db_collection_models import Collection  # noqa
    from .db_skill_models import Skill  # noqa

    configure_mappers()


def init_db(config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """
    Build a DatabaseManager and create all tables.

    Args:
        config: Optional DatabaseConfig. If None, uses the file-backed SQLite config.

    Returns:
        DatabaseManager: The initialized database manager
    """
    if config is None:
        config = get_sqlite_config()

    get_logger().info("Initializing DB", extra={"database": config.database})
    manager = DatabaseManager(config)

    import_all_models()
    manager.create_tables()

    return manager
