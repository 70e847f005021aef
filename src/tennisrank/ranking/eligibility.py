"""
Eligibility filter: editions counting toward a weekly ranking.

An edition counts at a ranking date D (always a Monday) when:
- it ended strictly before D, and no more than the rolling window before D
- its level is rankable under the ruleset (Olympic Games are opt-in)
- with ExcludingRedundantTournaments, no later edition of the same slot
  (or of the same tournament, for editions without a slot) is in the window
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, NamedTuple

from tennisrank.ranking.catalog import RankingRule, RankingVersion
from tennisrank.ranking.graph import Edition, Player

if TYPE_CHECKING:
    from tennisrank.ranking.context import LeagueContext


class EligibleEditions(NamedTuple):
    """Editions counting at a date, and the players involved in them."""
    editions: list[Edition]
    involved_players: list[Player]


def is_ranking_date(day: date) -> bool:
    """Rankings are only published on Mondays."""
    return day.weekday() == 0


def _redundancy_key(edition: Edition) -> tuple[str, int]:
    if edition.slot is not None:
        return ("slot", edition.slot.id)
    return ("tournament", edition.tournament.id)


def exclude_redundant(editions: list[Edition]) -> list[Edition]:
    """Keep only the latest editions of each slot (or tournament without slot)."""
    latest: dict[tuple[str, int], date] = {}
    for edition in editions:
        key = _redundancy_key(edition)
        if key not in latest or edition.date_end > latest[key]:
            latest[key] = edition.date_end
    return [e for e in editions if e.date_end == latest[_redundancy_key(e)]]


def editions_for_ranking_at(
    context: "LeagueContext",
    version: RankingVersion,
    ranking_date: date,
) -> EligibleEditions:
    """
    Select the editions counting toward the ranking at `ranking_date`.

    Non-Monday dates give empty results. Editions are ordered by
    (date_end, id); involved players (placeholder identities excluded)
    by id.
    """
    if not is_ranking_date(ranking_date):
        return EligibleEditions([], [])

    window_start = ranking_date - timedelta(weeks=context.ranking_weeks_count)
    levels = context.catalog.rankable_levels(version)

    editions = [
        e
        for e in context.graph.editions
        if window_start <= e.date_end < ranking_date and e.level in levels
    ]

    if version.contains_rule(RankingRule.EXCLUDING_REDUNDANT_TOURNAMENTS):
        editions = exclude_redundant(editions)

    editions.sort(key=lambda e: (e.date_end, e.id))

    players: dict[int, Player] = {}
    for edition in editions:
        for match in edition.matches:
            for player in match.players:
                if not player.is_john_doe:
                    players.setdefault(player.id, player)

    return EligibleEditions(editions, [players[pid] for pid in sorted(players)])
