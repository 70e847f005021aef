"""
Unit tests for the ranking aggregation.

Tests that:
- mandatory editions always count, other editions follow the best-N rule
- the ranking is ordered by points, then editions played, then player id
- per-edition points are memoized per (player, edition, version)
"""

from datetime import date

import pytest

from tennisrank.config import League
from tennisrank.ranking.aggregator import PointsCache, points_and_editions_for, rank_all_at
from tennisrank.ranking.catalog import RankingRule, RankingVersion
from tennisrank.ranking.eligibility import editions_for_ranking_at
from tennisrank.ranking.errors import IncompleteMatchDataError

from factories import ATP_250, FULL, GRAND_SLAM, PLAIN

MONDAY = date(2018, 6, 11)
BEST_ONLY = RankingVersion(3, frozenset({RankingRule.BEST_PERFORMANCES_ONLY}))


def _points(context, player, version):
    editions, _ = editions_for_ranking_at(context, version, MONDAY)
    return points_and_editions_for(context, player, editions, version, PointsCache(context.league, version.id))


def test_grand_slam_champion(builder):
    """One mandatory Grand Slam won in the window: (2000, 1)."""
    edition = builder.edition(GRAND_SLAM, date(2018, 1, 28))
    builder.match(edition, "F", 1, 2)
    context = builder.context()

    assert _points(context, builder.player(1), PLAIN) == (2000, 1)


class TestBestPerformances:

    @pytest.fixture
    def context(self, builder):
        # Player 1: three ATP 250 titles, an ATP 250 semi-final, a Grand Slam final lost
        for month in (2, 3, 4):
            edition = builder.edition(ATP_250, date(2018, month, 4))
            builder.match(edition, "F", 1, 2)
        edition = builder.edition(ATP_250, date(2018, 5, 6))
        builder.match(edition, "SF", 1, 3)
        slam = builder.edition(GRAND_SLAM, date(2018, 1, 28))
        builder.match(slam, "SF", 1, 5)
        builder.match(slam, "F", 4, 1)
        return builder.context(best=2)

    def test_all_editions_count_without_rule(self, builder, context):
        assert _points(context, builder.player(1), PLAIN) == (1200 + 3 * 250 + 150, 5)

    def test_best_n_non_mandatory(self, builder, context):
        # Mandatory Grand Slam, then the 2 best of the 4 other results
        assert _points(context, builder.player(1), BEST_ONLY) == (1200 + 250 + 250, 5)

    def test_edition_count_includes_every_involved_edition(self, builder, context):
        _, count = _points(context, builder.player(2), BEST_ONLY)
        assert count == 3


class TestRankAllAt:

    def test_order(self, builder):
        edition = builder.edition(ATP_250, date(2018, 5, 6))
        builder.bracket(edition, "QF")
        # Player 9 reaches 90 points in two editions, player 3 in one
        for day in (date(2018, 3, 4), date(2018, 4, 1)):
            other = builder.edition(ATP_250, day)
            builder.match(other, "R16", 9, 10)
        context = builder.context()

        ranked = rank_all_at(context, PLAIN, MONDAY, PointsCache(League.ATP, PLAIN.id))

        points = [line.points for line in ranked]
        assert points == sorted(points, reverse=True)
        assert [(line.player.id, line.points, line.editions_count) for line in ranked[:4]] == [
            (1, 250, 1),
            (5, 150, 1),
            (3, 90, 1),
            (7, 90, 1),
        ]
        assert [(line.player.id, line.points, line.editions_count) for line in ranked[4:6]] == [
            (9, 90, 2),
            (10, 10, 2),
        ]
        # Equal points and editions: ascending player id
        assert [line.player.id for line in ranked[6:]] == [2, 4, 6, 8]

    def test_non_monday(self, builder):
        edition = builder.edition(ATP_250, date(2018, 5, 6))
        builder.match(edition, "F", 1, 2)
        context = builder.context()

        assert rank_all_at(context, PLAIN, date(2018, 6, 12), PointsCache(League.ATP, PLAIN.id)) == []


class TestPointsCache:

    def test_points_are_memoized(self, builder):
        edition = builder.edition(GRAND_SLAM, date(2018, 1, 28))
        builder.match(edition, "F", 1, 2)
        context = builder.context()
        cache = PointsCache(League.ATP, PLAIN.id)

        first = rank_all_at(context, PLAIN, MONDAY, cache)
        assert cache.misses == 2 and cache.hits == 0
        assert len(cache) == 2

        second = rank_all_at(context, PLAIN, MONDAY, cache)
        assert second == first
        assert cache.hits == 2

    def test_bound_to_one_version(self, builder):
        context = builder.context()
        cache = PointsCache(League.ATP, PLAIN.id)
        with pytest.raises(ValueError):
            rank_all_at(context, FULL, MONDAY, cache)

    def test_bound_to_one_league(self, builder):
        context = builder.context(league=League.WTA)
        cache = PointsCache(League.ATP, PLAIN.id)
        with pytest.raises(ValueError):
            points_and_editions_for(context, builder.player(1), [], PLAIN, cache)


def test_incomplete_edition_scores_zero(builder, monkeypatch, caplog):
    """An edition whose structure cannot be inferred does not abort the ranking."""
    broken = builder.edition(ATP_250, date(2018, 5, 6))
    builder.match(broken, "R32", 1, 2)
    fine = builder.edition(GRAND_SLAM, date(2018, 1, 28))
    builder.match(fine, "F", 1, 3)
    context = builder.context()

    def _raise(player, version):
        raise IncompleteMatchDataError(broken.id, "no round after R32")

    monkeypatch.setattr(broken, "points_for", _raise)

    with caplog.at_level("WARNING"):
        ranked = rank_all_at(context, PLAIN, MONDAY, PointsCache(League.ATP, PLAIN.id))

    by_id = {line.player.id: line for line in ranked}
    assert (by_id[1].points, by_id[1].editions_count) == (2000, 2)
    assert by_id[2].points == 0
    assert "no round after R32" in caplog.text
