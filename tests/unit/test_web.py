"""Tests for the JSON API, on the seeded league database."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from tennisrank.config import League, settings
from tennisrank.ranking.service import LeagueRegistry, RankingService
from tennisrank.tasks.locks import ranking_lock_name, ranking_run_lock
from tennisrank.web.main import app, get_registry


@pytest.fixture
def client(league_sessionmaker, monkeypatch):
    monkeypatch.setattr(settings, "open_era_begin", date(2017, 1, 2))
    registry = LeagueRegistry({League.ATP: league_sessionmaker})
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_versions(client):
    response = client.get("/api/ranking/atp/versions")
    assert response.status_code == 200
    payload = response.json()
    assert payload["league"] == "atp"
    assert [v["id"] for v in payload["versions"]] == [1, 2]
    assert "INCLUDING_QUALIFICATION_BONUS" in payload["versions"][1]["rules"]


def test_generate_then_read(client):
    response = client.post("/api/ranking/atp/1")
    assert response.status_code == 200
    assert response.json()["weeks_written"] == 72

    response = client.get("/api/ranking/atp/1/2018-05-23/2")
    assert response.status_code == 200
    assert response.json()["date"] == "2018-05-21"
    ranking = response.json()["ranking"]
    assert [line["player"]["id"] for line in ranking] == [1, 2]
    assert ranking[0]["player"]["name"] == "First1 Last1"
    assert ranking[0]["points"] == 2000


def test_computed_ranking(client):
    response = client.get("/api/ranking/atp/computed/2/2018-05-21/10")
    assert response.status_code == 200
    ranking = response.json()["ranking"]
    assert [(line["ranking"], line["player"]["id"], line["points"]) for line in ranking] == [
        (1, 1, 2000),
        (2, 2, 1200),
        (3, 3, 272),
        (4, 4, 15),
    ]


def test_computed_ranking_non_monday(client):
    response = client.get("/api/ranking/atp/computed/1/2018-05-22/10")
    assert response.status_code == 200
    assert response.json()["ranking"] == []


def test_debug_player(client):
    response = client.get("/api/ranking/atp/debug/2/2018-05-20/3")
    assert response.status_code == 200
    payload = response.json()
    assert (payload["points"], payload["editions"]) == (272, 2)


def test_debug_unknown_player(client):
    response = client.get("/api/ranking/atp/debug/2/2018-05-20/12345")
    assert response.status_code == 404


def test_unknown_version(client):
    assert client.get("/api/ranking/atp/42/2018-05-21/10").status_code == 404
    assert client.post("/api/ranking/atp/42").status_code == 404


def test_unknown_league(client):
    assert client.get("/api/ranking/itf/versions").status_code == 422


def test_generation_in_progress(client, league_engine):
    with ranking_run_lock(league_engine, ranking_lock_name("atp", 1)):
        response = client.post("/api/ranking/atp/1")
    assert response.status_code == 409


def test_other_timeouts_are_not_conflicts(client, monkeypatch):
    def timed_out(self, version_id, cancel_event=None):
        raise TimeoutError("database read timed out")

    monkeypatch.setattr(RankingService, "generate_ranking", timed_out)
    with pytest.raises(TimeoutError):
        client.post("/api/ranking/atp/1")
