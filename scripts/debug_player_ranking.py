#!/usr/bin/env python3
"""
Compute a player's ranking points at a date, without writing anything.

The date is moved forward to the next Monday when needed.

Usage:
    python scripts/debug_player_ranking.py --league atp --version 2 --player 105223 --date 2018-12-24
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tennisrank.config import League, settings
from tennisrank.ranking.errors import UnknownRulesetError
from tennisrank.ranking.service import LeagueRegistry, monday_on_or_after


def main() -> int:
    parser = argparse.ArgumentParser(description="Debug a player's ranking at a date.")
    parser.add_argument("--league", choices=[league.value for league in League], default=League.ATP.value)
    parser.add_argument("--version", type=int, required=True, help="Ranking version id.")
    parser.add_argument("--player", type=int, required=True, help="Player id.")
    parser.add_argument("--date", type=date.fromisoformat, required=True, help="Date (YYYY-MM-DD).")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level)

    service = LeagueRegistry().service(League(args.league))
    try:
        computed = service.debug_points_for(args.player, args.version, args.date)
    except UnknownRulesetError as exc:
        print(f"ERROR: {exc}")
        return 1

    if computed is None:
        print(f"ERROR: unknown player {args.player}")
        return 1

    points, editions = computed
    player = service.context.graph.player(args.player)
    print(f"{player.name} at {monday_on_or_after(args.date)}: {points} points, {editions} editions")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
