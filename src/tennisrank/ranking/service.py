"""
Ranking service: batch driver and read operations of one league.

Weekly generation flow (generate_ranking):
1. Start from the latest persisted ranking date of the ruleset
   (or the era start when nothing is persisted)
2. Stop the day after the latest edition end date
3. Every Monday after the start: load the matches of every year the
   rolling window touches (already loaded years are skipped), rank
   every involved player, insert one row per player, commit

Each week commits on its own: a failed or cancelled run leaves a prefix of
weeks in place and the next run resumes after the last persisted Monday.
The run holds a lock for (league, version), so two runs never insert the
same rows.

Usage:
    registry = LeagueRegistry()
    service = registry.service(League.ATP)
    result = service.generate_ranking(version_id=2)
    top10 = service.ranking_at_date(2, date(2018, 12, 24), 10)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session, sessionmaker

from tennisrank.config import League, settings
from tennisrank.db.session import get_sessionmaker
from tennisrank.ranking.aggregator import (
    PointsCache,
    RankedPlayer,
    points_and_editions_for,
    rank_all_at,
)
from tennisrank.ranking.catalog import RankingVersion
from tennisrank.ranking.context import LeagueContext
from tennisrank.ranking.eligibility import editions_for_ranking_at
from tennisrank.ranking.loader import (
    RankingRow,
    insert_ranking_rows,
    last_ranking_date,
    load_league,
    load_matches,
    load_ranking_at_date,
)
from tennisrank.tasks.locks import ranking_lock_name, ranking_run_lock

logger = logging.getLogger(__name__)

ONE_WEEK = timedelta(weeks=1)


def monday_on_or_after(day: date) -> date:
    return day + timedelta(days=(7 - day.weekday()) % 7)


def monday_on_or_before(day: date) -> date:
    return day - timedelta(days=day.weekday())


@dataclass
class GenerationResult:
    """Summary returned by RankingService.generate_ranking()."""
    league: League
    version_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    first_date: Optional[date] = None
    last_date: Optional[date] = None
    weeks_written: int = 0
    rows_written: int = 0
    cancelled: bool = False
    cache_hits: int = 0
    cache_misses: int = 0

    @property
    def duration_s(self) -> float:
        if self.ended_at is None:
            return 0.0
        return (self.ended_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "league": self.league.value,
            "version_id": self.version_id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "duration_s": self.duration_s,
            "first_date": self.first_date.isoformat() if self.first_date else None,
            "last_date": self.last_date.isoformat() if self.last_date else None,
            "weeks_written": self.weeks_written,
            "rows_written": self.rows_written,
            "cancelled": self.cancelled,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
        }


class RankingService:
    """
    Ranking operations of one league, over its own context and caches.

    Read results are cached per (version, date). A generation run drops
    the cached results of its version once it is over.
    """

    def __init__(self, context: LeagueContext, session_factory: sessionmaker) -> None:
        self.context = context
        self.session_factory = session_factory
        # Guards the graph (matches are loaded lazily) and the result caches
        self._lock = threading.RLock()
        self._computed: dict[tuple[int, date], list[RankedPlayer]] = {}
        self._persisted: dict[tuple[int, date], list[RankingRow]] = {}

    @property
    def league(self) -> League:
        return self.context.league

    def versions(self) -> list[RankingVersion]:
        return sorted(self.context.versions.values(), key=lambda v: v.id)

    def _window_years(self, monday: date) -> range:
        """Years of every match that can count toward the ranking at `monday`."""
        window_start = monday - timedelta(weeks=self.context.ranking_weeks_count)
        return range(window_start.year, monday.year + 1)

    def _ensure_matches(self, session: Session, monday: date) -> None:
        with self._lock:
            for year in self._window_years(monday):
                load_matches(session, self.context, year)

    def _forget(self, version_id: int) -> None:
        with self._lock:
            for cache in (self._computed, self._persisted):
                for key in [k for k in cache if k[0] == version_id]:
                    del cache[key]

    # ------------------------------------------------------------------
    # Batch driver
    # ------------------------------------------------------------------

    def generate_ranking(
        self,
        version_id: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationResult:
        """
        Compute and persist every missing weekly ranking of a ruleset.

        Args:
            version_id: Ruleset to generate.
            cancel_event: When set, the run stops before the next week.

        Raises:
            UnknownRulesetError: no such version in this league.
            RunLockBusy: another run of the same version holds the lock.
        """
        version = self.context.version(version_id)
        result = GenerationResult(
            league=self.league,
            version_id=version.id,
            started_at=datetime.now(timezone.utc),
        )

        session = self.session_factory()
        try:
            with ranking_run_lock(
                session.get_bind(),
                ranking_lock_name(self.league.value, version.id),
                timeout_seconds=settings.ranking_lock_timeout_seconds,
                poll_interval_seconds=settings.ranking_lock_poll_seconds,
            ):
                self._run(session, version, result, cancel_event)
        finally:
            session.close()
            self._forget(version.id)
            result.ended_at = datetime.now(timezone.utc)

        logger.info(
            "%s version %s: %d weeks, %d rows written in %.1fs%s",
            self.league.value,
            version.id,
            result.weeks_written,
            result.rows_written,
            result.duration_s,
            " (cancelled)" if result.cancelled else "",
        )
        return result

    def _run(
        self,
        session: Session,
        version: RankingVersion,
        result: GenerationResult,
        cancel_event: Optional[threading.Event],
    ) -> None:
        cache = PointsCache(self.league, version.id)

        start = last_ranking_date(session, version.id) or settings.open_era_begin
        latest_end = self.context.graph.latest_edition_date_end()
        if latest_end is None:
            logger.info("%s: no edition loaded, nothing to generate", self.league.value)
            return
        stop = latest_end + timedelta(days=1)

        start += ONE_WEEK
        while start <= stop:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                logger.info("%s version %s: cancelled before %s", self.league.value, version.id, start)
                break

            with self._lock:
                self._ensure_matches(session, start)
                ranked = rank_all_at(self.context, version, start, cache)

            # The whole week is computed before any row of it is written
            try:
                rows = insert_ranking_rows(session, version.id, start, ranked)
                session.commit()
            except Exception:
                session.rollback()
                raise

            if result.first_date is None:
                result.first_date = start
            result.last_date = start
            result.weeks_written += 1
            result.rows_written += rows
            result.cache_hits = cache.hits
            result.cache_misses = cache.misses
            logger.debug("%s version %s: %s written (%d players)", self.league.value, version.id, start, rows)

            start += ONE_WEEK

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def debug_points_for(
        self,
        player_id: int,
        version_id: int,
        day: date,
    ) -> Optional[tuple[int, int]]:
        """
        (points, editions played) of a player at the Monday on or after `day`.

        Nothing is persisted. Returns None for an unknown player.

        Raises:
            UnknownRulesetError: no such version in this league.
        """
        version = self.context.version(version_id)
        player = self.context.graph.player(player_id)
        if player is None:
            return None

        monday = monday_on_or_after(day)
        session = self.session_factory()
        try:
            self._ensure_matches(session, monday)
        finally:
            session.close()

        with self._lock:
            editions, _ = editions_for_ranking_at(self.context, version, monday)
            return points_and_editions_for(
                self.context, player, editions, version, PointsCache(self.league, version.id)
            )

    def rank_all_at(self, version_id: int, day: date) -> list[RankedPlayer]:
        """
        Ranking computed from matches at a date; empty for non-Mondays.

        Raises:
            UnknownRulesetError: no such version in this league.
        """
        version = self.context.version(version_id)
        key = (version.id, day)
        with self._lock:
            if key in self._computed:
                return self._computed[key]

        if day.weekday() == 0:
            session = self.session_factory()
            try:
                self._ensure_matches(session, day)
            finally:
                session.close()

        with self._lock:
            ranked = rank_all_at(self.context, version, day, PointsCache(self.league, version.id))
            self._computed[key] = ranked
        return ranked

    def ranking_at_date(
        self,
        version_id: int,
        day: date,
        top: Optional[int] = None,
    ) -> list[RankingRow]:
        """
        Persisted ranking of the week containing `day` (its Monday).

        Raises:
            UnknownRulesetError: no such version in this league.
        """
        version = self.context.version(version_id)
        key = (version.id, monday_on_or_before(day))

        with self._lock:
            rows = self._persisted.get(key)
        if rows is None:
            session = self.session_factory()
            try:
                rows = load_ranking_at_date(session, version.id, key[1])
            finally:
                session.close()
            with self._lock:
                self._persisted[key] = rows

        return rows if top is None else rows[:top]


class LeagueRegistry:
    """
    One RankingService per league, built on first use.

    Each service gets its own session factory and its own loaded context,
    so ATP and WTA requests never share any state.
    """

    def __init__(self, session_factories: Optional[dict[League, sessionmaker]] = None) -> None:
        self._session_factories = dict(session_factories or {})
        self._services: dict[League, RankingService] = {}
        self._lock = threading.Lock()

    def session_factory(self, league: League) -> sessionmaker:
        league = League(league)
        if league not in self._session_factories:
            self._session_factories[league] = get_sessionmaker(league)
        return self._session_factories[league]

    def service(self, league: League) -> RankingService:
        league = League(league)
        with self._lock:
            if league not in self._services:
                factory = self.session_factory(league)
                session = factory()
                try:
                    context = load_league(session, league)
                finally:
                    session.close()
                self._services[league] = RankingService(context, factory)
            return self._services[league]
