"""
Database session management for tennisrank.

Provides one SQLAlchemy engine and session factory per league, with proper
connection pooling configuration. Uses the settings from config.py.

Engines are created lazily and kept in a dict keyed by league: there is no
shared "current league", every caller names the league it works on.

Usage:
    # As a context manager (recommended for scripts)
    from tennisrank.config import League
    from tennisrank.db import get_session

    with get_session(League.ATP) as session:
        levels = session.query(Level).all()
        # Commits automatically on exit, rolls back on exception

    # When the caller manages commits itself (batch driver)
    factory = get_sessionmaker(League.WTA)
    session = factory()
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tennisrank.config import League, settings


def create_league_engine(league: League) -> Engine:
    """
    Create SQLAlchemy engine for a league with connection pooling.

    The engine is configured with:
    - Connection pool for efficient reuse
    - Echo mode disabled (set LOG_LEVEL=DEBUG for SQL logging)
    - Pre-ping to verify connections before use (handles stale connections)
    """
    return create_engine(
        settings.database_url_for(league),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # Verify connection is alive before using
        echo=settings.log_level == "DEBUG",  # Log SQL only in debug mode
    )


_engines: dict[League, Engine] = {}
_sessionmakers: dict[League, sessionmaker] = {}


def get_engine(league: League) -> Engine:
    """Get or create the engine of a league."""
    league = League(league)
    if league not in _engines:
        _engines[league] = create_league_engine(league)
    return _engines[league]


def get_sessionmaker(league: League) -> sessionmaker:
    """Session factory bound to the engine of a league."""
    league = League(league)
    if league not in _sessionmakers:
        _sessionmakers[league] = sessionmaker(
            autocommit=False,  # We'll handle commits explicitly
            autoflush=False,  # Don't auto-flush before queries (more control)
            bind=get_engine(league),
        )
    return _sessionmakers[league]


@contextmanager
def get_session(league: League) -> Generator[Session, None, None]:
    """
    Context manager for database sessions of a league.

    Automatically commits on successful exit, rolls back on exception.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = get_sessionmaker(league)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
