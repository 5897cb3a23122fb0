"""
Shared test fixtures.

This module provides database setup, configuration snapshots, the fake HTTP
session and a fully wired pipeline context.
"""

import pytest
from sqlalchemy.orm import Session

from upskills_core.config import AppConfig, FetchConfig, SecurityConfig, reset_config, set_config
from upskills_core.context.pipeline_context import PipelineContext
from upskills_core.db import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    get_development_config,
    import_all_models,
)

from tests.fixtures.factories import TEST_SALT, configure_factories
from tests.fixtures.fake_http import FakeHttpSession


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """SQLite in-memory database configuration for testing."""
    return get_development_config()


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    """Database manager with all models registered."""
    import_all_models()
    manager = DatabaseManager(db_config)
    yield manager
    manager.close()


@pytest.fixture(scope="function")
def tables(db_manager: DatabaseManager):
    """Create all tables for one test and drop them afterwards."""
    Base.metadata.create_all(db_manager.engine)
    yield
    Base.metadata.drop_all(db_manager.engine)


@pytest.fixture(scope="function")
def db_session(db_manager: DatabaseManager, tables) -> Session:
    """
    A database session for each test, with factories bound to it.

    The session is rolled back and closed after each test.
    """
    session = db_manager.get_session()
    configure_factories(session)

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration snapshot with a fixed salt and a short fetch budget."""
    config = AppConfig(
        environment="test",
        fetch=FetchConfig(timeout_seconds=0.5, max_bytes=4096, chunk_size=256),
        security=SecurityConfig(token_salt=TEST_SALT),
    )
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def fake_http() -> FakeHttpSession:
    return FakeHttpSession()


@pytest.fixture
def pipeline_context(app_config, db_manager, tables, fake_http) -> PipelineContext:
    """Pipeline wired to the in-memory database and the fake HTTP session."""
    return PipelineContext.create(config=app_config, db_manager=db_manager, http_session=fake_http)
