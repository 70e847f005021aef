"""
Synthetic league data shared by the tests.

- a scoring catalog with Grand Slam, Masters Cup, ATP 250 and Olympic
  Games point scales (Challenger has no grid entry)
- GraphBuilder: editions and matches built directly in memory
- seed_league(): the same kind of data written to a league database
"""

import itertools
from datetime import date, datetime
from typing import Optional

from tennisrank.config import League
from tennisrank.db import models
from tennisrank.ranking.catalog import (
    Entry,
    GridPoint,
    Level,
    QualificationPoint,
    RankingRule,
    RankingVersion,
    Round,
    ScoringCatalog,
)
from tennisrank.ranking.context import LeagueContext
from tennisrank.ranking.graph import Edition, Match, Player, Slot, Tournament, TournamentGraph

GRAND_SLAM = Level(1, "G", "Grand Slam", display_order=1, mandatory=True)
MASTERS_CUP = Level(2, "F", "Masters Cup", display_order=2, mandatory=True)
ATP_250 = Level(4, "A", "ATP 250", display_order=4, mandatory=False)
OLYMPICS = Level(6, "O", "Olympic Games", display_order=6, mandatory=False)
CHALLENGER = Level(7, "C", "Challenger", display_order=7, mandatory=False)  # not in the grid

ROUNDS = {
    "F": Round(1, "F", "Final", players_count=2, importance=1),
    "SF": Round(2, "SF", "Semi-final", players_count=4, importance=2),
    "QF": Round(3, "QF", "Quarter-final", players_count=8, importance=3),
    "R16": Round(4, "R16", "Round of 16", players_count=16, importance=4),
    "R32": Round(5, "R32", "Round of 32", players_count=32, importance=5),
    "R64": Round(6, "R64", "Round of 64", players_count=64, importance=6),
    "R128": Round(7, "R128", "Round of 128", players_count=128, importance=7),
    "RR": Round(8, "RR", "Round robin", players_count=8, importance=10),
    "BR": Round(9, "BR", "Bronze reward", players_count=2, importance=11),
}

QUALIFIER = Entry(1, "Q", "Qualifier")
WILDCARD = Entry(2, "WC", "Wildcard")

GRAND_SLAM_POINTS = {
    "F": 2000, "SF": 1200, "QF": 720, "R16": 360, "R32": 180, "R64": 90, "R128": 45,
}
ATP_250_POINTS = {"F": 250, "SF": 150, "QF": 90, "R16": 45, "R32": 20}
OLYMPICS_POINTS = {"F": 750, "SF": 450, "BR": 340, "QF": 270, "R16": 135, "R32": 70}
MASTERS_CUP_POINTS = {"F": 500, "SF": 400, "RR": 200}


def _grid(level: Level, points: dict[str, int], participation: int) -> list[GridPoint]:
    return [
        GridPoint(level, ROUNDS[code], value, participation_points=participation)
        for code, value in points.items()
    ]


def make_catalog() -> ScoringCatalog:
    grid = (
        _grid(GRAND_SLAM, GRAND_SLAM_POINTS, 10)
        + _grid(ATP_250, ATP_250_POINTS, 5)
        + _grid(OLYMPICS, OLYMPICS_POINTS, 0)
        + _grid(MASTERS_CUP, MASTERS_CUP_POINTS, 0)
    )
    qualification = [
        QualificationPoint(ATP_250, 28, 12),
        QualificationPoint(ATP_250, 48, 16),
        QualificationPoint(GRAND_SLAM, 128, 25),
    ]
    return ScoringCatalog(
        [GRAND_SLAM, MASTERS_CUP, ATP_250, OLYMPICS, CHALLENGER],
        ROUNDS.values(),
        [QUALIFIER, WILDCARD],
        grid,
        qualification,
    )


PLAIN = RankingVersion(1, frozenset())
FULL = RankingVersion(
    2,
    frozenset({
        RankingRule.INCLUDING_OLYMPIC_GAMES,
        RankingRule.INCLUDING_QUALIFICATION_BONUS,
        RankingRule.BEST_PERFORMANCES_ONLY,
        RankingRule.EXCLUDING_REDUNDANT_TOURNAMENTS,
    }),
)


class GraphBuilder:
    """Builds editions and matches on a synthetic catalog."""

    def __init__(self, catalog: ScoringCatalog) -> None:
        self.catalog = catalog
        self.graph = TournamentGraph()
        self._edition_ids = itertools.count(1)
        self._match_ids = itertools.count(1)
        self._tournament_ids = itertools.count(1000)

    def player(self, player_id: int, last_name: Optional[str] = None) -> Player:
        player = self.graph.player(player_id)
        if player is None:
            player = Player(player_id, f"First{player_id}", last_name or f"Last{player_id}")
            self.graph.add_player(player)
        return player

    def slot(self, slot_id: int, level: Level, mandatory: Optional[bool] = None) -> Slot:
        slot = Slot(slot_id, f"Slot {slot_id}", level, mandatory=mandatory)
        self.graph.add_slot(slot)
        return slot

    def edition(
        self,
        level: Level,
        date_end: date,
        tournament_id: Optional[int] = None,
        slot: Optional[Slot] = None,
        draw_size: Optional[int] = None,
    ) -> Edition:
        if tournament_id is None:
            tournament_id = next(self._tournament_ids)
        try:
            tournament = self.graph.tournament(tournament_id)
        except KeyError:
            tournament = Tournament(tournament_id, f"Tournament {tournament_id}")
            self.graph.add_tournament(tournament)

        edition_id = next(self._edition_ids)
        edition = Edition(
            id=edition_id,
            year=date_end.year,
            name=f"{tournament.name} {date_end.year}",
            tournament=tournament,
            level=level,
            date_begin=date_end,
            date_end=date_end,
            catalog=self.catalog,
            slot=slot,
            draw_size=draw_size,
        )
        self.graph.add_edition(edition)
        return edition

    def match(
        self,
        edition: Edition,
        round_code: str,
        winner_id: int,
        loser_id: int,
        winner_entry: Optional[Entry] = None,
        loser_entry: Optional[Entry] = None,
    ) -> Match:
        rnd = ROUNDS[round_code]
        match = Match(
            id=next(self._match_ids),
            edition=edition,
            round=rnd,
            winner=self.player(winner_id),
            loser=self.player(loser_id),
            grid_point=self.catalog.grid_point(edition.level, rnd),
            winner_entry=winner_entry,
            loser_entry=loser_entry,
        )
        edition.add_match(match)
        return match

    def bracket(self, edition: Edition, first_round: str, first_player_id: int = 1) -> int:
        """
        Full single-elimination draw where the lowest id always wins.

        Returns the champion's id.
        """
        rnd = ROUNDS[first_round]
        alive = list(range(first_player_id, first_player_id + rnd.players_count))
        while rnd is not None:
            winners = []
            for i in range(0, len(alive), 2):
                self.match(edition, rnd.code, alive[i], alive[i + 1])
                winners.append(alive[i])
            alive = winners
            rnd = self.catalog.round_by_importance(rnd.importance - 1)
        return alive[0]

    def context(self, weeks: int = 52, best: int = 18, league: League = League.ATP) -> LeagueContext:
        return LeagueContext(
            league=league,
            catalog=self.catalog,
            graph=self.graph,
            versions={PLAIN.id: PLAIN, FULL.id: FULL},
            ranking_weeks_count=weeks,
            best_performances_count=best,
        )


def seed_league(session) -> None:
    """
    Small league database.

    - Roland Garros 2017 (slot 1, Grand Slam): semi-finals and final.
      Player 1 beats 3, player 2 beats 4, player 1 beats 2.
    - Lyon 2018 (ATP 250, stored draw size 28): qualifier 3 beats 4 in the final.
    - Version 1: no rule. Version 2: olympics, qualifier bonus, best
      performances, redundant tournaments excluded.
    """
    session.add(models.Configuration(id=1, best_performances_count_for_ranking=18, ranking_weeks_count=52))
    for level in (GRAND_SLAM, ATP_250, OLYMPICS):
        session.add(models.Level(
            id=level.id, code=level.code, name=level.name,
            display_order=level.display_order, mandatory=level.mandatory,
        ))
    for rnd in ROUNDS.values():
        session.add(models.Round(
            id=rnd.id, code=rnd.code, name=rnd.name,
            players_count=rnd.players_count, importance=rnd.importance,
        ))
    session.add(models.Entry(id=QUALIFIER.id, code=QUALIFIER.code, name=QUALIFIER.name))
    for code, points in GRAND_SLAM_POINTS.items():
        session.add(models.GridPoint(
            level_id=GRAND_SLAM.id, round_id=ROUNDS[code].id, points=points, participation_points=10,
        ))
    for code, points in ATP_250_POINTS.items():
        session.add(models.GridPoint(
            level_id=ATP_250.id, round_id=ROUNDS[code].id, points=points, participation_points=5,
        ))
    session.add(models.QualificationPoint(level_id=ATP_250.id, draw_size_min=28, points=12))

    session.add(models.RankingVersion(id=1, creation_date=datetime(2020, 1, 1)))
    session.add(models.RankingVersion(id=2, creation_date=datetime(2020, 1, 2)))
    session.flush()
    for rule in FULL.rules:
        session.add(models.RankingVersionRule(version_id=2, rule_id=int(rule)))

    session.add(models.Tournament(id=1, name="Roland Garros", known_codes="520;RG"))
    session.add(models.Tournament(id=2, name="Lyon", known_codes="7290"))
    session.add(models.Slot(id=1, name="Roland Garros", level_id=GRAND_SLAM.id, mandatory=None))
    for player_id in (1, 2, 3, 4):
        session.add(models.Player(
            id=player_id, first_name=f"First{player_id}", last_name=f"Last{player_id}",
            hand="R", country="FRA",
        ))
    session.add(models.Player(id=99, first_name="John", last_name="Unknown", country="UNK"))
    session.flush()

    session.add(models.Edition(
        id=10, year=2017, name="Roland Garros", tournament_id=1, slot_id=1,
        level_id=GRAND_SLAM.id, date_begin=date(2017, 5, 28), date_end=date(2017, 6, 11),
        surface="Clay", indoor=False,
    ))
    session.add(models.Edition(
        id=20, year=2018, name="Lyon", tournament_id=2, slot_id=None, draw_size=28,
        level_id=ATP_250.id, date_begin=date(2018, 5, 14), date_end=date(2018, 5, 20),
        surface="Clay", indoor=False,
    ))
    session.flush()

    session.add(models.MatchGeneral(id=1, edition_id=10, match_num=1, round_id=ROUNDS["SF"].id, winner_id=1, loser_id=3))
    session.add(models.MatchGeneral(id=2, edition_id=10, match_num=2, round_id=ROUNDS["SF"].id, winner_id=2, loser_id=4))
    session.add(models.MatchGeneral(
        id=3, edition_id=10, match_num=3, best_of=5, round_id=ROUNDS["F"].id,
        winner_id=1, loser_id=2, minutes=182,
    ))
    session.add(models.MatchGeneral(
        id=4, edition_id=20, match_num=1, round_id=ROUNDS["F"].id,
        winner_id=3, winner_entry_id=QUALIFIER.id, loser_id=4,
    ))
    session.flush()
    session.add(models.MatchScore(match_id=3, w_set_1=6, l_set_1=4, w_set_2=7, l_set_2=6, tb_set_2=5))
    session.add(models.MatchStat(match_id=3, w_ace=10, w_df=2, l_ace=4, l_df=5))
    session.flush()

