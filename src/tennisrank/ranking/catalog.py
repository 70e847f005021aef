"""
Scoring catalog: static reference tables of one league.

Levels, rounds, entries, the point grid and the qualification bonus scale,
loaded once per league and read-only afterwards. Every lookup is a plain
dict access on maps owned by the catalog instance.

Round importance:
    1 is the final, 2 the semi-final, and so on toward the first round.
    Round robin ('RR') and bronze reward ('BR') rounds carry out-of-band
    importance values and are never returned by the chain lookups
    (round_by_importance, round_by_players_count).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Iterable, Optional

OLYMPIC_GAMES_CODE = "O"
QUALIFICATION_CODE = "Q"

ROUND_ROBIN = "RR"
BRONZE_REWARD = "BR"
FINAL = "F"
QUARTER_FINAL = "QF"


@dataclass(frozen=True)
class Level:
    """Competition tier."""
    id: int
    code: str
    name: str
    display_order: int = 0
    mandatory: bool = False

    @property
    def is_olympic_games(self) -> bool:
        return self.code == OLYMPIC_GAMES_CODE


@dataclass(frozen=True)
class Round:
    """Competition stage; see module docstring for `importance`."""
    id: int
    code: str
    name: str
    players_count: int
    importance: int

    @property
    def is_round_robin(self) -> bool:
        return self.code == ROUND_ROBIN

    @property
    def is_bronze_reward(self) -> bool:
        return self.code == BRONZE_REWARD

    @property
    def is_final(self) -> bool:
        return self.code == FINAL

    @property
    def is_quarter_final(self) -> bool:
        return self.code == QUARTER_FINAL

    @property
    def in_bracket(self) -> bool:
        """True for single-elimination rounds."""
        return not (self.is_round_robin or self.is_bronze_reward)


@dataclass(frozen=True)
class Entry:
    """How a player entered a draw."""
    id: int
    code: str
    name: str

    @property
    def is_qualification(self) -> bool:
        return self.code == QUALIFICATION_CODE


@dataclass(frozen=True)
class GridPoint:
    """
    Point scale entry for a (level, round).

    `points` rewards winning the round; `participation_points` rewards
    reaching it without winning any match.
    """
    level: Level
    round: Round
    points: int
    participation_points: int = 0


@dataclass(frozen=True)
class QualificationPoint:
    """Flat bonus for qualifiers at a level, from a minimal draw size."""
    level: Level
    minimal_draw_size: int
    points: int


class RankingRule(IntEnum):
    """Boolean scoring policies; values are the ids stored in the database."""
    INCLUDING_OLYMPIC_GAMES = 1
    # Declared by the rulesets but without effect on the computation.
    INCLUDING_CHALLENGER_MATCHES = 2
    INCLUDING_QUALIFICATION_BONUS = 3
    BEST_PERFORMANCES_ONLY = 4
    EXCLUDING_REDUNDANT_TOURNAMENTS = 5


@dataclass(frozen=True)
class RankingVersion:
    """Immutable ruleset."""
    id: int
    rules: frozenset[RankingRule] = frozenset()
    creation_date: Optional[datetime] = None

    def contains_rule(self, rule: RankingRule) -> bool:
        return rule in self.rules

    @property
    def name(self) -> str:
        return f"Version {self.id}"


class ScoringCatalog:
    """
    Read-only lookup tables of one league.

    Usage:
        catalog = ScoringCatalog(levels, rounds, entries, grid, qualification)
        grid = catalog.grid_point(edition.level, match.round)
        bonus = catalog.qualification_point(edition.level, edition.draw_size())
    """

    def __init__(
        self,
        levels: Iterable[Level],
        rounds: Iterable[Round],
        entries: Iterable[Entry] = (),
        grid_points: Iterable[GridPoint] = (),
        qualification_points: Iterable[QualificationPoint] = (),
    ) -> None:
        self._levels: dict[int, Level] = {level.id: level for level in levels}
        self._rounds: dict[int, Round] = {rnd.id: rnd for rnd in rounds}
        self._entries: dict[int, Entry] = {entry.id: entry for entry in entries}

        self._grid: dict[tuple[int, int], GridPoint] = {
            (gp.level.id, gp.round.id): gp for gp in grid_points
        }

        # Greatest minimal draw size first, so the first fit is the best fit
        self._qualification: dict[int, list[QualificationPoint]] = {}
        for qp in qualification_points:
            self._qualification.setdefault(qp.level.id, []).append(qp)
        for scale in self._qualification.values():
            scale.sort(key=lambda qp: qp.minimal_draw_size, reverse=True)

        self._bracket_by_importance: dict[int, Round] = {}
        self._bracket_by_players_count: dict[int, Round] = {}
        for rnd in sorted(self._rounds.values(), key=lambda r: r.id):
            if not rnd.in_bracket:
                continue
            if rnd.importance in self._bracket_by_importance:
                raise ValueError(
                    f"Rounds {self._bracket_by_importance[rnd.importance].code} and "
                    f"{rnd.code} share importance {rnd.importance}"
                )
            self._bracket_by_importance[rnd.importance] = rnd
            self._bracket_by_players_count.setdefault(rnd.players_count, rnd)

    # ------------------------------------------------------------------
    # Plain lookups
    # ------------------------------------------------------------------

    def level(self, level_id: int) -> Level:
        return self._levels[level_id]

    def round(self, round_id: int) -> Round:
        return self._rounds[round_id]

    def entry(self, entry_id: Optional[int]) -> Optional[Entry]:
        if entry_id is None:
            return None
        return self._entries.get(entry_id)

    @property
    def levels(self) -> list[Level]:
        return sorted(self._levels.values(), key=lambda level: level.display_order)

    @property
    def rounds(self) -> list[Round]:
        return list(self._rounds.values())

    # ------------------------------------------------------------------
    # Point scales
    # ------------------------------------------------------------------

    def grid_point(self, level: Level, rnd: Round) -> Optional[GridPoint]:
        """Grid entry for a (level, round), None when the scale has no such entry."""
        return self._grid.get((level.id, rnd.id))

    def qualification_point(self, level: Level, draw_size: int) -> Optional[QualificationPoint]:
        """Entry of the level with the greatest minimal draw size not exceeding draw_size."""
        for qp in self._qualification.get(level.id, ()):
            if qp.minimal_draw_size <= draw_size:
                return qp
        return None

    def rankable_levels(self, version: RankingVersion) -> set[Level]:
        """
        Levels referenced by the point grid.

        Olympic Games levels only count when the ruleset includes them.
        """
        with_olympics = version.contains_rule(RankingRule.INCLUDING_OLYMPIC_GAMES)
        return {
            gp.level
            for gp in self._grid.values()
            if with_olympics or not gp.level.is_olympic_games
        }

    # ------------------------------------------------------------------
    # Bracket navigation
    # ------------------------------------------------------------------

    def round_by_importance(self, importance: int) -> Optional[Round]:
        return self._bracket_by_importance.get(importance)

    def round_by_players_count(self, players_count: int) -> Optional[Round]:
        return self._bracket_by_players_count.get(players_count)

    def quarter_final(self) -> Optional[Round]:
        return next((rnd for rnd in self._rounds.values() if rnd.is_quarter_final), None)
