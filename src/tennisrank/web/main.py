"""
JSON API over the ranking services.

Every route names its league explicitly; each league is served by its own
RankingService (see tennisrank.ranking.service.LeagueRegistry).

Run with:
    uvicorn tennisrank.web.main:app
"""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Path, Request
from fastapi.responses import JSONResponse

from tennisrank.config import League
from tennisrank.ranking.aggregator import RankedPlayer
from tennisrank.ranking.errors import UnknownRulesetError
from tennisrank.ranking.graph import Player
from tennisrank.ranking.service import LeagueRegistry, RankingService, monday_on_or_before
from tennisrank.tasks.locks import RunLockBusy

app = FastAPI(title="Tennis Historical Rankings")

_registry: Optional[LeagueRegistry] = None


def get_registry() -> LeagueRegistry:
    """Process-wide registry; leagues are loaded on first request."""
    global _registry
    if _registry is None:
        _registry = LeagueRegistry()
    return _registry


def get_service(league: League, registry: LeagueRegistry = Depends(get_registry)) -> RankingService:
    return registry.service(league)


@app.exception_handler(UnknownRulesetError)
async def unknown_ruleset_handler(request: Request, exc: UnknownRulesetError):
    return JSONResponse({"error": str(exc)}, status_code=404)


@app.exception_handler(RunLockBusy)
async def run_in_progress_handler(request: Request, exc: RunLockBusy):
    """A generation of the same version is already running."""
    return JSONResponse({"error": str(exc)}, status_code=409)


def _player_payload(player: Optional[Player], player_id: int) -> Dict[str, Any]:
    if player is None:
        return {"id": player_id, "name": None, "country": None}
    return {"id": player.id, "name": player.name, "country": player.country_code}


def _computed_payload(ranked: List[RankedPlayer]) -> List[Dict[str, Any]]:
    return [
        {
            "ranking": position,
            "player": _player_payload(line.player, line.player.id),
            "points": line.points,
            "editions": line.editions_count,
        }
        for position, line in enumerate(ranked, start=1)
    ]


@app.get("/api/ranking/{league}/versions")
def api_versions(service: RankingService = Depends(get_service)):
    return JSONResponse({
        "league": service.league.value,
        "versions": [
            {
                "id": version.id,
                "name": version.name,
                "rules": sorted(rule.name for rule in version.rules),
                "creation_date": version.creation_date.isoformat() if version.creation_date else None,
            }
            for version in service.versions()
        ],
    })


@app.get("/api/ranking/{league}/{version_id}/{ranking_date}/{top}")
def api_ranking(
    version_id: int,
    ranking_date: date,
    top: int = Path(..., ge=1, le=5000),
    service: RankingService = Depends(get_service),
):
    """
    Persisted ranking of the week containing `ranking_date`, best `top` first.

    The date is moved back to the Monday of its week.
    """
    rows = service.ranking_at_date(version_id, ranking_date, top)
    graph = service.context.graph
    return JSONResponse({
        "league": service.league.value,
        "version_id": version_id,
        "date": monday_on_or_before(ranking_date).isoformat(),
        "ranking": [
            {
                "ranking": row.ranking,
                "player": _player_payload(graph.player(row.player_id), row.player_id),
                "points": row.points,
                "editions": row.editions,
            }
            for row in rows
        ],
    })


@app.get("/api/ranking/{league}/computed/{version_id}/{ranking_date}/{top}")
def api_computed_ranking(
    version_id: int,
    ranking_date: date,
    top: int = Path(..., ge=1, le=5000),
    service: RankingService = Depends(get_service),
):
    """Ranking computed from matches, without reading the ranking table (Mondays only)."""
    ranked = service.rank_all_at(version_id, ranking_date)
    return JSONResponse({
        "league": service.league.value,
        "version_id": version_id,
        "date": ranking_date.isoformat(),
        "ranking": _computed_payload(ranked[:top]),
    })


@app.post("/api/ranking/{league}/{version_id}")
def api_generate_ranking(version_id: int, service: RankingService = Depends(get_service)):
    """
    Generate every missing weekly ranking of a version.

    Runs to completion before answering; 409 when a run of the same
    version is already in progress.
    """
    result = service.generate_ranking(version_id)
    return JSONResponse(result.to_dict())


@app.get("/api/ranking/{league}/debug/{version_id}/{ranking_date}/{player_id}")
def api_debug_player(
    version_id: int,
    ranking_date: date,
    player_id: int,
    service: RankingService = Depends(get_service),
):
    computed = service.debug_points_for(player_id, version_id, ranking_date)
    if computed is None:
        return JSONResponse({"error": f"Unknown player: {player_id}"}, status_code=404)
    points, editions = computed
    return JSONResponse({
        "league": service.league.value,
        "version_id": version_id,
        "player": _player_payload(service.context.graph.player(player_id), player_id),
        "points": points,
        "editions": editions,
    })
