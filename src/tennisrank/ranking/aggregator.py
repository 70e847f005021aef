"""
Aggregator: per-player ranking value from per-edition points.

Ranking value of a player at a date:
    sum of points at mandatory editions
  + sum of the best K points at the other editions
    (K = best_performances_count with BestPerformancesOnly, all otherwise)

Per-edition points are memoized in a PointsCache owned by the caller
(one batch run, or one diagnostic query). Point values depend on the
ruleset, so a cache is bound to a single (league, version) pair.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Iterable, NamedTuple, Optional

from tennisrank.config import League
from tennisrank.ranking.catalog import RankingRule, RankingVersion
from tennisrank.ranking.eligibility import editions_for_ranking_at
from tennisrank.ranking.errors import IncompleteMatchDataError
from tennisrank.ranking.graph import Edition, Player

if TYPE_CHECKING:
    from tennisrank.ranking.context import LeagueContext

logger = logging.getLogger(__name__)


class RankedPlayer(NamedTuple):
    """One line of a computed ranking, before positions are assigned."""
    player: Player
    points: int
    editions_count: int


class PointsCache:
    """
    Memo of Edition.points_for() results, keyed by (player, edition, version).

    Usage:
        cache = PointsCache(League.ATP, version.id)
        rank_all_at(context, version, monday, cache)
    """

    def __init__(self, league: League, version_id: int) -> None:
        self.league = league
        self.version_id = version_id
        self._points: dict[tuple[int, int, int], int] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._points)

    def check(self, league: League, version: RankingVersion) -> None:
        """
        Raises:
            ValueError: the cache belongs to another league or ruleset.
        """
        if league != self.league or version.id != self.version_id:
            raise ValueError(
                f"Points cache of {self.league.value}/version {self.version_id} "
                f"used for {league.value}/version {version.id}"
            )

    def get(self, player: Player, edition: Edition, version: RankingVersion) -> Optional[int]:
        points = self._points.get((player.id, edition.id, version.id))
        if points is None:
            self.misses += 1
        else:
            self.hits += 1
        return points

    def put(self, player: Player, edition: Edition, version: RankingVersion, points: int) -> None:
        self._points[(player.id, edition.id, version.id)] = points


def edition_points(
    edition: Edition,
    player: Player,
    version: RankingVersion,
    cache: PointsCache,
) -> int:
    """Cached points_for(); an edition with incomplete match data scores 0."""
    points = cache.get(player, edition, version)
    if points is not None:
        return points

    try:
        points = edition.points_for(player, version)
    except IncompleteMatchDataError as exc:
        logger.warning("Skipping edition %s for player %s: %s", edition.id, player.id, exc)
        points = 0

    cache.put(player, edition, version, points)
    return points


def points_and_editions_for(
    context: "LeagueContext",
    player: Player,
    editions: Iterable[Edition],
    version: RankingVersion,
    cache: PointsCache,
) -> tuple[int, int]:
    """
    Ranking points and number of editions played by a player.

    Args:
        editions: Editions counting at the ranking date
            (see eligibility.editions_for_ranking_at).

    Returns:
        (points, editions_played_count)
    """
    cache.check(context.league, version)

    involved = [e for e in editions if e.involves(player)]

    mandatory_points = 0
    other_points: list[int] = []
    for edition in involved:
        points = edition_points(edition, player, version, cache)
        if edition.mandatory:
            mandatory_points += points
        else:
            other_points.append(points)

    other_points.sort(reverse=True)
    if version.contains_rule(RankingRule.BEST_PERFORMANCES_ONLY):
        other_points = other_points[: context.best_performances_count]

    return mandatory_points + sum(other_points), len(involved)


def rank_all_at(
    context: "LeagueContext",
    version: RankingVersion,
    ranking_date: date,
    cache: PointsCache,
) -> list[RankedPlayer]:
    """
    Ranking of every player involved in the editions counting at a date.

    Sorted by points (descending), then editions played (ascending),
    then player id (ascending). Empty for non-Monday dates.
    """
    cache.check(context.league, version)

    editions, players = editions_for_ranking_at(context, version, ranking_date)

    ranked = []
    for player in players:
        points, editions_count = points_and_editions_for(context, player, editions, version, cache)
        ranked.append(RankedPlayer(player, points, editions_count))

    ranked.sort(key=lambda r: (-r.points, r.editions_count, r.player.id))

    logger.debug(
        "%s version %s at %s: %d editions, %d players",
        context.league.value, version.id, ranking_date, len(editions), len(ranked),
    )
    return ranked
