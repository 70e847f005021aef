#!/usr/bin/env python3
"""
Generate the missing weekly rankings of a ranking version.

Resumes after the latest persisted Monday of the version; every week is
committed on its own. Ctrl+C stops the run cleanly before the next week.

Usage:
    python scripts/generate_ranking.py --league atp --version 2
    python scripts/generate_ranking.py --league wta --version 1 --metrics-json out/run.json
"""
from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tennisrank.config import League, settings
from tennisrank.ranking.errors import UnknownRulesetError
from tennisrank.ranking.service import LeagueRegistry
from tennisrank.tasks.locks import RunLockBusy


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate weekly rankings for a ranking version.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--league",
        choices=[league.value for league in League],
        default=League.ATP.value,
        help="League database to work on.",
    )
    parser.add_argument(
        "--version",
        type=int,
        required=True,
        help="Ranking version id.",
    )
    parser.add_argument(
        "--metrics-json",
        default=None,
        help="Write a JSON summary to this path on completion.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cancel_event = threading.Event()

    def _request_stop(signum, frame):
        print("Stop requested; finishing the current week...")
        cancel_event.set()

    signal.signal(signal.SIGINT, _request_stop)

    league = League(args.league)
    print(f"RANKING GENERATION  league={league.value}  version={args.version}")
    print("-" * 60)

    service = LeagueRegistry().service(league)
    try:
        result = service.generate_ranking(args.version, cancel_event=cancel_event)
    except UnknownRulesetError as exc:
        print(f"ERROR: {exc}")
        return 1
    except RunLockBusy as exc:
        print(f"ERROR: another run is in progress ({exc})")
        return 2

    print("-" * 60)
    print(f"Weeks written:  {result.weeks_written}")
    print(f"Rows written:   {result.rows_written}")
    if result.first_date:
        print(f"Dates:          {result.first_date} -> {result.last_date}")
    if result.cancelled:
        print("Cancelled:      YES")
    print(f"Elapsed:        {result.duration_s:.2f}s")

    if args.metrics_json:
        payload = {"status": "cancelled" if result.cancelled else "success", **result.to_dict()}
        metrics_path = Path(args.metrics_json)
        metrics_path.parent.mkdir(parents=True, exist_ok=True)
        metrics_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
