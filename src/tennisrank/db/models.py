"""
SQLAlchemy ORM models for tennisrank.

This module maps the relational event log populated by the import pipeline
(reference tables, editions, players, matches) and the `ranking` table the
batch driver appends to.

Key design decisions:
- One database per league; the same schema is used for ATP and WTA
- Match data is split in three one-to-one tables (general, score, stats)
  exactly as imported; they are joined when a year of matches is loaded
- The ranking engine never works on ORM instances in its hot path: the
  loader converts rows into lightweight in-memory objects once

Tables:
- configuration: ranking constants (window length, best-N count)
- level, round, entry: competition reference data
- slot, tournament, edition: calendar fixtures and yearly instances
- player: player identities
- grid_point, qualification_point: point scales
- ranking_version, ranking_version_rule: rulesets
- match_general, match_score, match_stat: match rows
- ranking: weekly ranking snapshots (append-only)
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Reference Models
# =============================================================================

class Configuration(Base):
    """Ranking constants of a league database."""
    __tablename__ = "configuration"

    id: Mapped[int] = mapped_column(primary_key=True)
    best_performances_count_for_ranking: Mapped[int] = mapped_column(Integer, nullable=False)
    ranking_weeks_count: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Configuration(id={self.id}, weeks={self.ranking_weeks_count}, "
            f"best={self.best_performances_count_for_ranking})>"
        )


class Level(Base):
    """
    Competition tier (Grand Slam, Masters, ATP 500, Olympic Games...).

    `mandatory` means editions of this level always count toward the ranking,
    whatever the best-performances rule says.
    """
    __tablename__ = "level"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Level(code='{self.code}', name='{self.name}')>"


class Round(Base):
    """
    Competition stage.

    `importance` is 1 for the final and grows toward early rounds.
    Round robin ('RR') and bronze reward ('BR') carry values outside of
    the single-elimination chain.
    """
    __tablename__ = "round"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    players_count: Mapped[int] = mapped_column(Integer, nullable=False)
    importance: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<Round(code='{self.code}', importance={self.importance})>"


class Entry(Base):
    """How a player entered a draw (qualifier 'Q', wildcard 'WC', ...)."""
    __tablename__ = "entry"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Entry(code='{self.code}')>"


# =============================================================================
# Tournament Models
# =============================================================================

class Slot(Base):
    """
    Calendar fixture of a level (e.g. "Roland Garros").

    `mandatory` is tri-state: NULL defers to the level default.
    """
    __tablename__ = "slot"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level_id: Mapped[int] = mapped_column(ForeignKey("level.id"), nullable=False)
    mandatory: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    def __repr__(self) -> str:
        return f"<Slot(id={self.id}, name='{self.name}')>"


class Tournament(Base):
    """
    Tournament master data.

    `known_codes` lists, separated by ';', every code the import files
    used for this tournament over the years.
    """
    __tablename__ = "tournament"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    known_codes: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    editions: Mapped[list["Edition"]] = relationship(back_populates="tournament")

    def __repr__(self) -> str:
        return f"<Tournament(id={self.id}, name='{self.name}')>"


class Edition(Base):
    """
    A specific year's instance of a tournament.

    `draw_size` is NULL in most rows; the ranking engine infers it from
    the matches in that case.
    """
    __tablename__ = "edition"

    id: Mapped[int] = mapped_column(primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournament.id"), nullable=False)
    slot_id: Mapped[Optional[int]] = mapped_column(ForeignKey("slot.id"), nullable=True)
    draw_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    surface: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    indoor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    level_id: Mapped[int] = mapped_column(ForeignKey("level.id"), nullable=False)
    date_begin: Mapped[date] = mapped_column(Date, nullable=False)
    date_end: Mapped[date] = mapped_column(Date, nullable=False)

    tournament: Mapped["Tournament"] = relationship(back_populates="editions")

    __table_args__ = (
        UniqueConstraint("tournament_id", "year", name="uq_edition_tournament_year"),
        Index("idx_edition_year", "year"),
        Index("idx_edition_date_end", "date_end"),
    )

    def __repr__(self) -> str:
        return f"<Edition(id={self.id}, name='{self.name}', year={self.year})>"


# =============================================================================
# Player Model
# =============================================================================

class Player(Base):
    """
    Player identity.

    Placeholder identities used by the import files for unknown players
    have the last name "Unknown".
    """
    __tablename__ = "player"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    hand: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)  # 'R', 'L', 'A'
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    country: Mapped[str] = mapped_column(String(3), nullable=False, default="UNK")
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, name='{self.first_name} {self.last_name}')>"


# =============================================================================
# Point Scales
# =============================================================================

class GridPoint(Base):
    """Points awarded for winning a round (or participating in it) at a level."""
    __tablename__ = "grid_point"

    level_id: Mapped[int] = mapped_column(ForeignKey("level.id"), primary_key=True)
    round_id: Mapped[int] = mapped_column(ForeignKey("round.id"), primary_key=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    participation_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class QualificationPoint(Base):
    """Flat bonus for qualifiers, by level and minimal draw size."""
    __tablename__ = "qualification_point"

    level_id: Mapped[int] = mapped_column(ForeignKey("level.id"), primary_key=True)
    draw_size_min: Mapped[int] = mapped_column(Integer, primary_key=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# =============================================================================
# Ranking Models
# =============================================================================

class RankingVersion(Base):
    """Named ruleset; its rules are stored in ranking_version_rule."""
    __tablename__ = "ranking_version"

    id: Mapped[int] = mapped_column(primary_key=True)
    creation_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    rules: Mapped[list["RankingVersionRule"]] = relationship(
        back_populates="version", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<RankingVersion(id={self.id})>"


class RankingVersionRule(Base):
    """Association of a ruleset and one ranking rule id."""
    __tablename__ = "ranking_version_rule"

    version_id: Mapped[int] = mapped_column(ForeignKey("ranking_version.id"), primary_key=True)
    rule_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    version: Mapped["RankingVersion"] = relationship(back_populates="rules")


class Ranking(Base):
    """
    One player's weekly ranking entry for a ruleset.

    Append-only: one row per (version, player, Monday). Rows of a given
    date are always inserted together, in the same transaction.
    """
    __tablename__ = "ranking"

    version_id: Mapped[int] = mapped_column(ForeignKey("ranking_version.id"), primary_key=True)
    player_id: Mapped[int] = mapped_column(ForeignKey("player.id"), primary_key=True)
    ranking_date: Mapped[date] = mapped_column("date", Date, primary_key=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    ranking: Mapped[int] = mapped_column(Integer, nullable=False)
    editions: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_ranking_version_date_ranking", "version_id", "date", "ranking"),
    )

    def __repr__(self) -> str:
        return (
            f"<Ranking(version={self.version_id}, date={self.ranking_date}, "
            f"player={self.player_id}, ranking={self.ranking})>"
        )


# =============================================================================
# Match Models
# =============================================================================

class MatchGeneral(Base):
    """
    Match result, as imported.

    Walkovers, retirements, disqualifications and unfinished matches are
    kept as flags; the match still has a winner and a loser.
    """
    __tablename__ = "match_general"

    id: Mapped[int] = mapped_column(primary_key=True)
    edition_id: Mapped[int] = mapped_column(ForeignKey("edition.id"), nullable=False)
    match_num: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_of: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    round_id: Mapped[int] = mapped_column(ForeignKey("round.id"), nullable=False)
    minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    winner_id: Mapped[int] = mapped_column(ForeignKey("player.id"), nullable=False)
    winner_seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    winner_entry_id: Mapped[Optional[int]] = mapped_column(ForeignKey("entry.id"), nullable=True)
    winner_rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    winner_rank_points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    loser_id: Mapped[int] = mapped_column(ForeignKey("player.id"), nullable=False)
    loser_seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    loser_entry_id: Mapped[Optional[int]] = mapped_column(ForeignKey("entry.id"), nullable=True)
    loser_rank: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    loser_rank_points: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    walkover: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    retirement: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    disqualification: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unfinished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    score: Mapped[Optional["MatchScore"]] = relationship(back_populates="match", uselist=False)
    stat: Mapped[Optional["MatchStat"]] = relationship(back_populates="match", uselist=False)

    __table_args__ = (
        Index("idx_match_general_edition", "edition_id"),
    )

    def __repr__(self) -> str:
        return f"<MatchGeneral(id={self.id}, edition={self.edition_id}, round={self.round_id})>"


class MatchScore(Base):
    """Games per set (winner / loser / tie-break loser points), up to 5 sets."""
    __tablename__ = "match_score"

    match_id: Mapped[int] = mapped_column(ForeignKey("match_general.id"), primary_key=True)
    w_set_1: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_set_1: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tb_set_1: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_set_2: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_set_2: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tb_set_2: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_set_3: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_set_3: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tb_set_3: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_set_4: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_set_4: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tb_set_4: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_set_5: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_set_5: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tb_set_5: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    super_tb: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    match: Mapped["MatchGeneral"] = relationship(back_populates="score")


class MatchStat(Base):
    """Serve statistics of both players ('w_' winner, 'l_' loser)."""
    __tablename__ = "match_stat"

    match_id: Mapped[int] = mapped_column(ForeignKey("match_general.id"), primary_key=True)

    w_ace: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_df: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_sv_pt: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_1st_in: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_1st_won: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_2nd_won: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_sv_gms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_bp_saved: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    w_bp_faced: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    l_ace: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_df: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_sv_pt: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_1st_in: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_1st_won: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_2nd_won: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_sv_gms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_bp_saved: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    l_bp_faced: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    match: Mapped["MatchGeneral"] = relationship(back_populates="stat")
