"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests:

- catalog / builder: synthetic scoring catalog and tournament graph builder
- db_session: in-memory SQLite session rolled back after each test
- league_engine / league_sessionmaker: seeded in-memory league database
  shared across sessions and threads (batch driver, web tests)
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tennisrank.db.models import Base

from factories import GraphBuilder, make_catalog, seed_league


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def builder(catalog):
    return GraphBuilder(catalog)


# =============================================================================
# Database
# =============================================================================

@pytest.fixture(scope="session")
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory for fast tests that don't need
    PostgreSQL-specific features.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
    )
    return engine


@pytest.fixture(scope="session")
def tables(test_engine):
    """
    Create all tables for testing.

    This fixture runs once per test session.
    """
    Base.metadata.create_all(test_engine)
    yield
    Base.metadata.drop_all(test_engine)


@pytest.fixture
def db_session(test_engine, tables):
    """
    Create a database session for a test.

    Each test gets its own session with automatic rollback,
    ensuring tests don't affect each other.
    """
    connection = test_engine.connect()
    transaction = connection.begin()

    Session = sessionmaker(bind=connection)
    session = Session()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def seeded_session(db_session):
    seed_league(db_session)
    return db_session


@pytest.fixture
def league_engine():
    """Seeded league database usable from several sessions and threads."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    with factory() as session:
        seed_league(session)
        session.commit()
    yield engine
    engine.dispose()


@pytest.fixture
def league_sessionmaker(league_engine):
    return sessionmaker(bind=league_engine, autoflush=False)
