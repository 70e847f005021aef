"""
Tournament graph: tournaments, editions and matches of one league.

Tournament → Edition → Match aggregation, held in memory once loaded.
Editions are created for every (year, tournament) of the league when the
league is loaded; their matches are attached year by year afterwards.

The two non-trivial computations live on Edition:

1. draw_size(): stored value, or inferred from the loaded matches
   (round-robin groups, bronze-medal draws, byes in the first round).

2. points_for(player, version): points earned by a player at this edition
   under a ruleset (qualifier bonus, cumulative round-robin wins, bronze
   medal match, best knockout result with a fix for unrecorded wins).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from tennisrank.ranking.catalog import (
    Entry,
    GridPoint,
    Level,
    RankingRule,
    RankingVersion,
    Round,
    ScoringCatalog,
)
from tennisrank.ranking.errors import IncompleteMatchDataError

JOHN_DOE_LAST_NAME = "unknown"
COUNTRY_UNKNOWN = "UNK"

HANDS = {"R": "Right", "L": "Left", "A": "Ambidextrous"}


@dataclass(frozen=True)
class Player:
    """Player identity; immutable once loaded."""
    id: int
    first_name: str
    last_name: str
    hand: Optional[str] = None
    birth_date: Optional[date] = None
    country_code: str = COUNTRY_UNKNOWN
    height: Optional[int] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_john_doe(self) -> bool:
        """Placeholder identity for an unresolved player."""
        return self.last_name.strip().lower() == JOHN_DOE_LAST_NAME

    @property
    def hand_name(self) -> Optional[str]:
        return HANDS.get((self.hand or "").upper())

    def age(self, at: date) -> Optional[int]:
        """Age in full years at a date, None when unknown or not born yet."""
        if self.birth_date is None or self.birth_date > at:
            return None
        years = at.year - self.birth_date.year
        if (at.month, at.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years


@dataclass(frozen=True)
class Tournament:
    id: int
    name: str
    known_codes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Slot:
    """
    Calendar fixture of a level.

    `mandatory` is an optional override of the level default:
    True / False when set explicitly, None to defer to the level.
    """
    id: int
    name: str
    level: Level
    display_order: int = 0
    mandatory: Optional[bool] = None


def resolve_mandatory(level: Level, slot: Optional[Slot]) -> bool:
    """
    Whether an edition of `level` played in `slot` always counts for ranking.

    The slot override wins when it is set; otherwise the level default applies.
    """
    if slot is not None and slot.mandatory is not None:
        return slot.mandatory
    return level.mandatory


class Statistic(str, Enum):
    """Serve statistics; values are the column suffixes of match_stat."""
    ACE = "ace"
    DOUBLE_FAULT = "df"
    SERVE_POINT = "sv_pt"
    FIRST_SERVE_IN = "1st_in"
    FIRST_SERVE_WON = "1st_won"
    SECOND_SERVE_WON = "2nd_won"
    SERVE_GAME = "sv_gms"
    BREAK_POINT_SAVED = "bp_saved"
    BREAK_POINT_FACED = "bp_faced"


@dataclass(frozen=True)
class SetScore:
    """Games of one set; `tiebreak` holds the loser's tie-break points."""
    winner_games: int
    loser_games: int
    tiebreak: Optional[int] = None

    def __str__(self) -> str:
        text = f"{self.winner_games}-{self.loser_games}"
        if self.tiebreak is not None:
            text += f"({self.tiebreak})"
        return text


@dataclass(eq=False)
class Match:
    """
    One match of an edition.

    `grid_point` is resolved once, when the match is built, from the
    edition's level and the match round.
    """
    id: int
    edition: "Edition"
    round: Round
    winner: Player
    loser: Player
    grid_point: Optional[GridPoint] = None
    match_number: int = 0
    best_of: int = 3
    minutes: Optional[int] = None
    winner_seed: Optional[int] = None
    winner_entry: Optional[Entry] = None
    winner_rank: Optional[int] = None
    winner_rank_points: Optional[int] = None
    loser_seed: Optional[int] = None
    loser_entry: Optional[Entry] = None
    loser_rank: Optional[int] = None
    loser_rank_points: Optional[int] = None
    walkover: bool = False
    retirement: bool = False
    disqualification: bool = False
    unfinished: bool = False
    sets: list[SetScore] = field(default_factory=list)
    raw_super_tiebreak: Optional[str] = None
    winner_statistics: dict[Statistic, Optional[int]] = field(default_factory=dict)
    loser_statistics: dict[Statistic, Optional[int]] = field(default_factory=dict)

    @property
    def players(self) -> tuple[Player, Player]:
        return (self.winner, self.loser)

    def involves(self, player: Player) -> bool:
        return player.id in (self.winner.id, self.loser.id)

    def won_by(self, player: Player) -> bool:
        return self.winner.id == player.id

    def lost_by(self, player: Player) -> bool:
        return self.loser.id == player.id

    @property
    def score(self) -> str:
        text = " ".join(str(s) for s in self.sets)
        if self.raw_super_tiebreak:
            text = f"{text} [{self.raw_super_tiebreak}]".strip()
        if self.retirement:
            text += " RET"
        elif self.walkover:
            text = "W/O"
        elif self.disqualification:
            text += " DEF"
        return text

    def __repr__(self) -> str:
        return f"<Match(id={self.id}, edition={self.edition.id}, round='{self.round.code}')>"


def _grid_points(grid: Optional[GridPoint]) -> int:
    return grid.points if grid is not None else 0


class Edition:
    """
    One year's instance of a tournament, with its (append-only) matches.

    Matches must be loaded for draw_size() inference and points_for().
    """

    def __init__(
        self,
        id: int,
        year: int,
        name: str,
        tournament: Tournament,
        level: Level,
        date_begin: date,
        date_end: date,
        catalog: ScoringCatalog,
        slot: Optional[Slot] = None,
        draw_size: Optional[int] = None,
        surface: Optional[str] = None,
        indoor: bool = False,
    ) -> None:
        self.id = id
        self.year = year
        self.name = name
        self.tournament = tournament
        self.level = level
        self.date_begin = date_begin
        self.date_end = date_end
        self.slot = slot
        self.surface = surface
        self.indoor = indoor
        self.catalog = catalog
        self.stored_draw_size = draw_size
        self.matches: list[Match] = []

        self._match_ids: set[int] = set()
        self._player_ids: set[int] = set()
        self._draw_size: Optional[int] = None
        self._first_round: Optional[Round] = None

    def __repr__(self) -> str:
        return f"<Edition(id={self.id}, name='{self.name}', year={self.year})>"

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def add_match(self, match: Match) -> bool:
        """
        Attach a match to this edition.

        Returns False (and does nothing) for a match of another edition
        or a match already attached.
        """
        if match.edition is not self or match.id in self._match_ids:
            return False
        self.matches.append(match)
        self._match_ids.add(match.id)
        self._player_ids.update((match.winner.id, match.loser.id))
        # New rounds may change the inferred structure
        self._draw_size = None
        self._first_round = None
        return True

    @property
    def mandatory(self) -> bool:
        return resolve_mandatory(self.level, self.slot)

    @property
    def first_round(self) -> Optional[Round]:
        """
        Earliest round played, None while matches are not loaded.

        Largest players count wins; among equal counts, the greatest importance.
        """
        if not self.matches:
            return None
        if self._first_round is None:
            self._first_round = max(
                (m.round for m in self.matches),
                key=lambda r: (r.players_count, r.importance),
            )
        return self._first_round

    @property
    def final(self) -> Optional[Match]:
        return next((m for m in self.matches if m.round.is_final), None)

    def draw_size(self) -> int:
        """
        Stored draw size, or the one inferred from loaded matches.

        Returns 0 when nothing is stored and no match is loaded.

        Raises:
            IncompleteMatchDataError: the first round has byes but the
                catalog has no round following it.
        """
        if self.stored_draw_size is not None:
            return self.stored_draw_size
        if not self.matches:
            return 0
        if self._draw_size is None:
            self._draw_size = self._infer_draw_size()
        return self._draw_size

    def _infer_draw_size(self) -> int:
        first_round = self.first_round

        if first_round.is_round_robin:
            # Group stage of a season finale
            return first_round.players_count
        if first_round.is_bronze_reward:
            # Semi-final byes plus a final and a third place match
            return first_round.players_count * 2
        if first_round.players_count == 2:
            # Final only
            return first_round.players_count

        first_round_matches = sum(1 for m in self.matches if m.round.id == first_round.id)
        if first_round_matches * 2 >= first_round.players_count:
            # Full bracket (or more matches than the round allows: trust the round)
            return first_round.players_count

        # Byes: players entering at the next round, plus first round losers
        next_round = self.catalog.round_by_players_count(first_round.players_count // 2)
        if next_round is None:
            raise IncompleteMatchDataError(
                self.id,
                f"no round of {first_round.players_count // 2} players after {first_round.code}",
            )
        return next_round.players_count + first_round_matches

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def involves(self, player: Player) -> bool:
        return player.id in self._player_ids

    @property
    def player_ids(self) -> frozenset[int]:
        return frozenset(self._player_ids)

    def is_qualifier(self, player: Player) -> bool:
        """True if the player entered this edition through qualifying."""
        for m in self.matches:
            if m.won_by(player) and m.winner_entry is not None and m.winner_entry.is_qualification:
                return True
            if m.lost_by(player) and m.loser_entry is not None and m.loser_entry.is_qualification:
                return True
        return False

    def points_for(self, player: Player, version: RankingVersion) -> int:
        """
        Points earned by a player at this edition under a ruleset.

        Sum of:
        1. the qualifier bonus (when the ruleset includes it)
        2. every round-robin win
        3. either the bronze medal match outcome, or the best knockout
           result (a win, or participation points for a lone loss)

        Missing grid entries count as zero.
        """
        catalog = self.catalog
        points = 0

        if (
            version.contains_rule(RankingRule.INCLUDING_QUALIFICATION_BONUS)
            and self.is_qualifier(player)
        ):
            bonus = catalog.qualification_point(self.level, self.draw_size())
            points = bonus.points if bonus is not None else 0

        # Round-robin wins are cumulative
        points += sum(
            _grid_points(m.grid_point)
            for m in self.matches
            if m.round.is_round_robin and m.won_by(player)
        )

        bronze_matches = [
            m for m in self.matches if m.round.is_bronze_reward and m.involves(player)
        ]
        if bronze_matches:
            bronze_win = next((m for m in bronze_matches if m.won_by(player)), None)
            if bronze_win is not None:
                points += _grid_points(bronze_win.grid_point)
            else:
                # Fourth place gets the quarter-final winner points
                quarter_final = catalog.quarter_final()
                if quarter_final is not None:
                    points += _grid_points(catalog.grid_point(self.level, quarter_final))
            return points

        best_win = min(
            (m for m in self.matches if m.round.in_bracket and m.won_by(player)),
            key=lambda m: m.round.importance,
            default=None,
        )
        best_lose = min(
            (m for m in self.matches if m.round.in_bracket and m.lost_by(player)),
            key=lambda m: m.round.importance,
            default=None,
        )

        if best_lose is None:
            points += _grid_points(best_win.grid_point if best_win else None)
        elif best_win is not None:
            # Reaching the lost round implies winning the round just before it.
            # A win recorded further back means a win is missing (untracked walkover).
            grid = best_win.grid_point
            last_win_round = catalog.round_by_importance(best_lose.round.importance + 1)
            if last_win_round is not None and best_win.round.importance > last_win_round.importance:
                grid = catalog.grid_point(self.level, last_win_round)
            points += _grid_points(grid)
        elif best_lose.grid_point is not None:
            points += best_lose.grid_point.participation_points

        return points


class TournamentGraph:
    """
    Owned, id-indexed collections of players, tournaments, slots and editions.

    Usage:
        graph = TournamentGraph()
        graph.add_player(player)
        graph.add_edition(edition)
        graph.edition(42).add_match(match)
    """

    def __init__(self) -> None:
        self._players: dict[int, Player] = {}
        self._tournaments: dict[int, Tournament] = {}
        self._slots: dict[int, Slot] = {}
        self._editions: dict[int, Edition] = {}

    def add_player(self, player: Player) -> None:
        self._players[player.id] = player

    def add_tournament(self, tournament: Tournament) -> None:
        self._tournaments[tournament.id] = tournament

    def add_slot(self, slot: Slot) -> None:
        self._slots[slot.id] = slot

    def add_edition(self, edition: Edition) -> None:
        if edition.id in self._editions:
            raise ValueError(f"Edition already registered: {edition.id}")
        self._editions[edition.id] = edition

    def player(self, player_id: int) -> Optional[Player]:
        return self._players.get(player_id)

    def tournament(self, tournament_id: int) -> Tournament:
        return self._tournaments[tournament_id]

    def slot(self, slot_id: Optional[int]) -> Optional[Slot]:
        if slot_id is None:
            return None
        return self._slots[slot_id]

    def edition(self, edition_id: int) -> Edition:
        return self._editions[edition_id]

    @property
    def editions(self) -> Iterable[Edition]:
        return self._editions.values()

    @property
    def players(self) -> Iterable[Player]:
        return self._players.values()

    def editions_between_years(self, year_begin: int, year_end: int) -> list[Edition]:
        """Editions whose year is in [year_begin, year_end]."""
        return [e for e in self._editions.values() if year_begin <= e.year <= year_end]

    def latest_edition_date_end(self) -> Optional[date]:
        return max((e.date_end for e in self._editions.values()), default=None)

    def matches_for_year(self, year: int, final_only: bool = False) -> list[Match]:
        return [
            m
            for e in self._editions.values()
            if e.year == year
            for m in e.matches
            if not final_only or m.round.is_final
        ]
