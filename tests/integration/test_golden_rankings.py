"""
Golden-value regression against a populated ATP database.

Set TENNISRANK_GOLDEN_ATP_URL to the SQLAlchemy URL of a full ATP database
(ranking version 2 defined) to run these tests; they are skipped otherwise.
"""

import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tennisrank.config import League
from tennisrank.ranking.loader import load_league
from tennisrank.ranking.service import RankingService

GOLDEN_URL = os.environ.get("TENNISRANK_GOLDEN_ATP_URL")

pytestmark = pytest.mark.skipif(not GOLDEN_URL, reason="TENNISRANK_GOLDEN_ATP_URL not set")


@pytest.fixture(scope="module")
def atp_service():
    engine = create_engine(GOLDEN_URL)
    factory = sessionmaker(bind=engine, autoflush=False)
    with factory() as session:
        context = load_league(session, League.ATP)
    yield RankingService(context, factory)
    engine.dispose()


@pytest.mark.parametrize(
    "player_id, ranking_date, expected",
    [
        (105223, date(2018, 12, 24), (5300, 15)),  # Juan Martin del Potro
        (105777, date(2017, 12, 25), (5150, 23)),  # Grigor Dimitrov
    ],
)
def test_debug_points_match_reference_values(atp_service, player_id, ranking_date, expected):
    assert atp_service.debug_points_for(player_id, 2, ranking_date) == expected
