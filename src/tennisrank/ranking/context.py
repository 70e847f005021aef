"""
League context: everything the engine knows about one league.

A context is built once per league by loader.load_league() and owned by
that league's RankingService. Two contexts never share state: the ATP
and WTA catalogs, graphs and caches are fully separate objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tennisrank.config import League
from tennisrank.ranking.catalog import RankingVersion, ScoringCatalog
from tennisrank.ranking.errors import UnknownRulesetError
from tennisrank.ranking.graph import TournamentGraph


@dataclass
class LeagueContext:
    """Catalog, tournament graph and ranking constants of one league."""
    league: League
    catalog: ScoringCatalog
    graph: TournamentGraph
    versions: dict[int, RankingVersion] = field(default_factory=dict)
    ranking_weeks_count: int = 52
    best_performances_count: int = 18
    # year -> True when only finals are loaded for that year
    loaded_match_years: dict[int, bool] = field(default_factory=dict)

    def version(self, version_id: int) -> RankingVersion:
        """
        Look up a ruleset by id.

        Raises:
            UnknownRulesetError: no such version in this league.
        """
        try:
            return self.versions[version_id]
        except KeyError:
            raise UnknownRulesetError(version_id) from None

    def matches_loaded(self, year: int, final_only: bool = False) -> bool:
        """True if the matches requested for `year` are already in the graph."""
        if year not in self.loaded_match_years:
            return False
        return final_only or not self.loaded_match_years[year]
