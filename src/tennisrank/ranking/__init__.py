"""
Ranking computation engine.

Components, leaves first:
- catalog: levels, rounds, entries, point scales, rulesets
- graph: tournaments, editions, matches; draw size and per-edition points
- eligibility: editions counting toward a weekly ranking
- aggregator: mandatory + best-N aggregation, points memo
- service: weekly batch driver and read operations, one per league
"""

from tennisrank.ranking.aggregator import PointsCache, RankedPlayer, points_and_editions_for, rank_all_at
from tennisrank.ranking.catalog import RankingRule, RankingVersion, ScoringCatalog
from tennisrank.ranking.context import LeagueContext
from tennisrank.ranking.eligibility import EligibleEditions, editions_for_ranking_at
from tennisrank.ranking.errors import IncompleteMatchDataError, RankingError, UnknownRulesetError
from tennisrank.ranking.graph import Edition, Match, Player, TournamentGraph
from tennisrank.ranking.service import GenerationResult, LeagueRegistry, RankingService

__all__ = [
    "Edition",
    "EligibleEditions",
    "GenerationResult",
    "IncompleteMatchDataError",
    "LeagueContext",
    "LeagueRegistry",
    "Match",
    "Player",
    "PointsCache",
    "RankedPlayer",
    "RankingError",
    "RankingRule",
    "RankingService",
    "RankingVersion",
    "ScoringCatalog",
    "TournamentGraph",
    "UnknownRulesetError",
    "editions_for_ranking_at",
    "points_and_editions_for",
    "rank_all_at",
]
