"""
Apply rating updates for every debate completed in a recent window.

Safe to re-run: updates already recorded for a debate are skipped.

Usage:
  python run_rating_batch.py
  python run_rating_batch.py --hours 72
  python run_rating_batch.py --since 2026-01-01T00:00:00+00:00
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from config import DB_PATH, LOG_LEVEL, RATING_BATCH_WINDOW_HOURS
from infrastructure.service_container import ServiceConfig, ServiceContainer

logger = logging.getLogger("arena.scripts.rating_batch")


def _resolve_since(since: str | None, hours: int) -> datetime:
    if since:
        parsed = datetime.fromisoformat(since)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc) - timedelta(hours=hours)


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Run Glicko-2 rating updates for recently completed debates.")
    parser.add_argument("--db-path", default=DB_PATH, help="Path to SQLite DB (default: DB_PATH)")
    parser.add_argument(
        "--hours",
        type=int,
        default=RATING_BATCH_WINDOW_HOURS,
        help="Look-back window in hours (default: RATING_BATCH_WINDOW_HOURS)",
    )
    parser.add_argument("--since", default=None, help="ISO timestamp cutoff (overrides --hours)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        since = _resolve_since(args.since, args.hours)
    except ValueError:
        print(f"ERROR: invalid --since timestamp: {args.since}", file=sys.stderr)
        return 2

    container = ServiceContainer(ServiceConfig(db_path=args.db_path))
    container.initialize()

    result = container.rating_service.run_batch_update(since)
    print(
        f"Processed {result['processed']} debates: "
        f"{len(result['succeeded'])} succeeded, {len(result['failed'])} failed"
    )
    for debate_id in result["failed"]:
        print(f"- failed: {debate_id}")
    return 1 if result["failed"] else 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
