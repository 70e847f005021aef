"""
Loader: database rows to in-memory league context.

Reference data (levels, rounds, entries, scales, slots, tournaments,
editions, players, rulesets) is loaded in bulk once per league. Matches
are loaded one year at a time, on demand, and attached to the editions
of the graph; a year is never loaded twice.

Also holds the ranking table accessors used by the batch driver:
latest persisted date, weekly inserts, and ranking reads.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import NamedTuple, Optional, Sequence

from sqlalchemy import func, insert, select
from sqlalchemy.orm import Session, selectinload

from tennisrank.config import League, settings
from tennisrank.db import models
from tennisrank.ranking.aggregator import RankedPlayer
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
from tennisrank.ranking.graph import (
    Edition,
    Match,
    Player,
    SetScore,
    Slot,
    Statistic,
    Tournament,
    TournamentGraph,
)

logger = logging.getLogger(__name__)

MAX_SETS = 5


class RankingRow(NamedTuple):
    """Persisted ranking line."""
    player_id: int
    points: int
    ranking: int
    editions: int


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

def load_catalog(session: Session) -> ScoringCatalog:
    """Levels, rounds, entries and point scales of the league."""
    levels = {
        row.id: Level(
            id=row.id,
            code=row.code,
            name=row.name,
            display_order=row.display_order,
            mandatory=row.mandatory,
        )
        for row in session.scalars(select(models.Level))
    }
    rounds = {
        row.id: Round(
            id=row.id,
            code=row.code,
            name=row.name,
            players_count=row.players_count,
            importance=row.importance,
        )
        for row in session.scalars(select(models.Round))
    }
    entries = [
        Entry(id=row.id, code=row.code, name=row.name)
        for row in session.scalars(select(models.Entry))
    ]
    grid_points = [
        GridPoint(
            level=levels[row.level_id],
            round=rounds[row.round_id],
            points=row.points,
            participation_points=row.participation_points,
        )
        for row in session.scalars(select(models.GridPoint))
    ]
    qualification_points = [
        QualificationPoint(
            level=levels[row.level_id],
            minimal_draw_size=row.draw_size_min,
            points=row.points,
        )
        for row in session.scalars(select(models.QualificationPoint))
    ]
    return ScoringCatalog(
        levels.values(), rounds.values(), entries, grid_points, qualification_points
    )


def load_versions(session: Session) -> dict[int, RankingVersion]:
    """Rulesets with their rules; unknown rule ids are ignored."""
    versions = {}
    query = select(models.RankingVersion).options(selectinload(models.RankingVersion.rules))
    for row in session.scalars(query):
        rules = set()
        for rule in row.rules:
            try:
                rules.add(RankingRule(rule.rule_id))
            except ValueError:
                logger.warning("Version %s: unknown ranking rule %s", row.id, rule.rule_id)
        versions[row.id] = RankingVersion(
            id=row.id, rules=frozenset(rules), creation_date=row.creation_date
        )
    return versions


def _player_from_row(row: models.Player) -> Player:
    return Player(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        hand=row.hand,
        birth_date=row.birth_date,
        country_code=row.country,
        height=row.height,
    )


def load_graph(session: Session, catalog: ScoringCatalog) -> TournamentGraph:
    """Players, tournaments, slots and editions, without matches."""
    graph = TournamentGraph()

    for row in session.scalars(select(models.Player)):
        graph.add_player(_player_from_row(row))

    for row in session.scalars(select(models.Tournament)):
        codes = tuple(code for code in (row.known_codes or "").split(";") if code)
        graph.add_tournament(Tournament(id=row.id, name=row.name, known_codes=codes))

    for row in session.scalars(select(models.Slot)):
        graph.add_slot(
            Slot(
                id=row.id,
                name=row.name,
                level=catalog.level(row.level_id),
                display_order=row.display_order,
                mandatory=row.mandatory,
            )
        )

    for row in session.scalars(select(models.Edition).order_by(models.Edition.id)):
        graph.add_edition(
            Edition(
                id=row.id,
                year=row.year,
                name=row.name,
                tournament=graph.tournament(row.tournament_id),
                level=catalog.level(row.level_id),
                date_begin=row.date_begin,
                date_end=row.date_end,
                catalog=catalog,
                slot=graph.slot(row.slot_id),
                draw_size=row.draw_size,
                surface=row.surface,
                indoor=row.indoor,
            )
        )

    return graph


def load_league(session: Session, league: League) -> LeagueContext:
    """
    Build the context of a league from its database.

    Ranking constants come from the configuration row; settings provide
    the values when that row is missing.
    """
    configuration = session.get(models.Configuration, settings.configuration_id)
    if configuration is None:
        logger.warning(
            "%s: configuration row %s not found, using settings defaults",
            league.value, settings.configuration_id,
        )
        weeks_count = settings.ranking_weeks_count
        best_count = settings.best_performances_count
    else:
        weeks_count = configuration.ranking_weeks_count
        best_count = configuration.best_performances_count_for_ranking

    catalog = load_catalog(session)
    graph = load_graph(session, catalog)
    context = LeagueContext(
        league=league,
        catalog=catalog,
        graph=graph,
        versions=load_versions(session),
        ranking_weeks_count=weeks_count,
        best_performances_count=best_count,
    )

    logger.info(
        "Loaded %s: %d editions, %d players, %d ranking versions",
        league.value,
        len(list(graph.editions)),
        len(list(graph.players)),
        len(context.versions),
    )
    return context


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

def _sets_from_row(score: Optional[models.MatchScore]) -> list[SetScore]:
    sets = []
    if score is None:
        return sets
    for n in range(1, MAX_SETS + 1):
        winner_games = getattr(score, f"w_set_{n}")
        loser_games = getattr(score, f"l_set_{n}")
        if winner_games is None or loser_games is None:
            break
        sets.append(SetScore(winner_games, loser_games, getattr(score, f"tb_set_{n}")))
    return sets


def _statistics_from_row(stat: Optional[models.MatchStat], prefix: str) -> dict[Statistic, Optional[int]]:
    if stat is None:
        return {}
    return {s: getattr(stat, f"{prefix}_{s.value}") for s in Statistic}


def _match_from_rows(
    context: LeagueContext,
    general: models.MatchGeneral,
    score: Optional[models.MatchScore],
    stat: Optional[models.MatchStat],
) -> Optional[Match]:
    catalog = context.catalog
    graph = context.graph

    edition = graph.edition(general.edition_id)
    rnd = catalog.round(general.round_id)
    winner = graph.player(general.winner_id)
    loser = graph.player(general.loser_id)
    if winner is None or loser is None:
        logger.warning("Match %s skipped: unknown player", general.id)
        return None

    grid_point = catalog.grid_point(edition.level, rnd)
    if grid_point is None:
        logger.debug("No grid point for level %s, round %s", edition.level.code, rnd.code)

    return Match(
        id=general.id,
        edition=edition,
        round=rnd,
        winner=winner,
        loser=loser,
        grid_point=grid_point,
        match_number=general.match_num,
        best_of=general.best_of,
        minutes=general.minutes,
        winner_seed=general.winner_seed,
        winner_entry=catalog.entry(general.winner_entry_id),
        winner_rank=general.winner_rank,
        winner_rank_points=general.winner_rank_points,
        loser_seed=general.loser_seed,
        loser_entry=catalog.entry(general.loser_entry_id),
        loser_rank=general.loser_rank,
        loser_rank_points=general.loser_rank_points,
        walkover=general.walkover,
        retirement=general.retirement,
        disqualification=general.disqualification,
        unfinished=general.unfinished,
        sets=_sets_from_row(score),
        raw_super_tiebreak=score.super_tb if score is not None else None,
        winner_statistics=_statistics_from_row(stat, "w"),
        loser_statistics=_statistics_from_row(stat, "l"),
    )


def load_matches(
    session: Session,
    context: LeagueContext,
    year: int,
    final_only: bool = False,
) -> int:
    """
    Attach the matches of a year to the editions of the graph.

    Idempotent: a year already loaded (or loaded with all rounds when only
    finals are asked) is not queried again. Loading all rounds after a
    finals-only load fetches the non-final rounds only.

    Returns:
        Number of matches attached.
    """
    if context.matches_loaded(year, final_only):
        return 0

    final_round_ids = [r.id for r in context.catalog.rounds if r.is_final]

    query = (
        select(models.MatchGeneral, models.MatchScore, models.MatchStat)
        .join(models.Edition, models.Edition.id == models.MatchGeneral.edition_id)
        .outerjoin(models.MatchScore, models.MatchScore.match_id == models.MatchGeneral.id)
        .outerjoin(models.MatchStat, models.MatchStat.match_id == models.MatchGeneral.id)
        .where(models.Edition.year == year)
        .order_by(models.MatchGeneral.id)
    )
    if final_only:
        query = query.where(models.MatchGeneral.round_id.in_(final_round_ids))
    elif year in context.loaded_match_years:
        # Finals are already there
        query = query.where(models.MatchGeneral.round_id.not_in(final_round_ids))

    attached = 0
    for general, score, stat in session.execute(query):
        match = _match_from_rows(context, general, score, stat)
        if match is not None and match.edition.add_match(match):
            attached += 1

    context.loaded_match_years[year] = final_only
    logger.info(
        "%s: loaded %d matches for %s%s",
        context.league.value, attached, year, " (finals only)" if final_only else "",
    )
    return attached


# ---------------------------------------------------------------------------
# Ranking table
# ---------------------------------------------------------------------------

def last_ranking_date(session: Session, version_id: int) -> Optional[date]:
    """Most recent persisted ranking date of a ruleset, None when nothing is persisted."""
    return session.scalar(
        select(func.max(models.Ranking.ranking_date)).where(
            models.Ranking.version_id == version_id
        )
    )


def insert_ranking_rows(
    session: Session,
    version_id: int,
    ranking_date: date,
    ranked: Sequence[RankedPlayer],
) -> int:
    """
    Append one ranking row per player; positions follow the input order.

    Does not commit.
    """
    if not ranked:
        return 0
    session.execute(
        insert(models.Ranking),
        [
            {
                "version_id": version_id,
                "player_id": line.player.id,
                "ranking_date": ranking_date,
                "points": line.points,
                "ranking": position,
                "editions": line.editions_count,
            }
            for position, line in enumerate(ranked, start=1)
        ],
    )
    return len(ranked)


def load_ranking_at_date(
    session: Session,
    version_id: int,
    ranking_date: date,
    top: Optional[int] = None,
) -> list[RankingRow]:
    """Persisted ranking of a ruleset at a date, best positions first."""
    query = (
        select(
            models.Ranking.player_id,
            models.Ranking.points,
            models.Ranking.ranking,
            models.Ranking.editions,
        )
        .where(
            models.Ranking.version_id == version_id,
            models.Ranking.ranking_date == ranking_date,
        )
        .order_by(models.Ranking.ranking)
    )
    if top is not None:
        query = query.limit(top)
    return [RankingRow(*row) for row in session.execute(query)]
