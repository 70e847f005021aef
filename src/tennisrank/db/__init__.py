"""
Database module for tennisrank.

Provides SQLAlchemy ORM models and per-league session management.

Usage:
    from tennisrank.config import League
    from tennisrank.db import get_session, Edition

    with get_session(League.ATP) as session:
        editions = session.query(Edition).all()
"""

from tennisrank.db.models import (
    Base,
    Configuration,
    Edition,
    Entry,
    GridPoint,
    Level,
    MatchGeneral,
    MatchScore,
    MatchStat,
    Player,
    QualificationPoint,
    Ranking,
    RankingVersion,
    RankingVersionRule,
    Round,
    Slot,
    Tournament,
)
from tennisrank.db.session import get_engine, get_session, get_sessionmaker

__all__ = [
    # Base
    "Base",
    # Reference models
    "Configuration",
    "Level",
    "Round",
    "Entry",
    "Slot",
    "Tournament",
    "Edition",
    "Player",
    "GridPoint",
    "QualificationPoint",
    # Ranking models
    "RankingVersion",
    "RankingVersionRule",
    "Ranking",
    # Match models
    "MatchGeneral",
    "MatchScore",
    "MatchStat",
    # Session
    "get_engine",
    "get_session",
    "get_sessionmaker",
]
