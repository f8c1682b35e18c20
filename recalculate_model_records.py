"""
Recalculate and repair models.wins / losses / ties / total_debates from model_debate_results.

model_debate_results holds one authoritative row per (model, debate); the
counters on models are derived from it and can be recomputed at any time.

Usage:
  python recalculate_model_records.py --dry-run
  python recalculate_model_records.py
  python recalculate_model_records.py --db-path path/to/debate_arena.db
"""

from __future__ import annotations

import argparse
import logging
import os
import shutil
import sys
from datetime import datetime

from config import DB_PATH
from repositories.model_repository import ModelRepository

logger = logging.getLogger("arena.scripts.recalculate")


def _make_backup(db_path: str) -> str:
    """Create a timestamped backup next to the db file and return its path."""
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = f"{db_path}.backup.{ts}"
    shutil.copy2(db_path, backup_path)
    return backup_path


def fetch_recalc_rows(repo: ModelRepository) -> list[dict]:
    """One row per model with stored and recomputed counters."""
    with repo.connection() as conn:
        cursor = conn.cursor()
        cursor.execute(
            """
            WITH agg AS (
                SELECT
                    model_id,
                    SUM(CASE WHEN outcome = 'win' THEN 1 ELSE 0 END) AS new_wins,
                    SUM(CASE WHEN outcome = 'loss' THEN 1 ELSE 0 END) AS new_losses,
                    SUM(CASE WHEN outcome = 'tie' THEN 1 ELSE 0 END) AS new_ties
                FROM model_debate_results
                GROUP BY model_id
            )
            SELECT
                m.model_id AS model_id,
                m.name AS name,
                m.wins AS old_wins,
                m.losses AS old_losses,
                m.ties AS old_ties,
                m.total_debates AS old_total,
                COALESCE(a.new_wins, 0) AS new_wins,
                COALESCE(a.new_losses, 0) AS new_losses,
                COALESCE(a.new_ties, 0) AS new_ties
            FROM models m
            LEFT JOIN agg a ON a.model_id = m.model_id
            ORDER BY m.model_id
            """
        )
        rows = [dict(r) for r in cursor.fetchall()]
    for r in rows:
        r["new_total"] = r["new_wins"] + r["new_losses"] + r["new_ties"]
    return rows


def _old(r: dict) -> tuple:
    return (r["old_wins"], r["old_losses"], r["old_ties"], r["old_total"])


def _new(r: dict) -> tuple:
    return (r["new_wins"], r["new_losses"], r["new_ties"], r["new_total"])


def changed_rows(rows: list[dict]) -> list[dict]:
    return [r for r in rows if _old(r) != _new(r)]


def _print_report(rows: list[dict], *, verbose: bool) -> int:
    changed = changed_rows(rows)
    print(f"Models total: {len(rows)}")
    print(f"Models needing update: {len(changed)}")
    if verbose:
        for r in changed:
            print(
                f"- {r['model_id']} ({r['name']}): "
                f"{r['old_wins']}-{r['old_losses']}-{r['old_ties']} -> "
                f"{r['new_wins']}-{r['new_losses']}-{r['new_ties']}"
            )
    return len(changed)


def apply_updates(repo: ModelRepository, rows: list[dict]) -> int:
    """Rewrite counters for every model whose stored values drifted. Returns the count."""
    updated = 0
    for r in changed_rows(rows):
        repo.recount_debate_results(r["model_id"])
        logger.info(f"Recounted {r['model_id']}: {_old(r)} -> {_new(r)}")
        updated += 1
    return updated


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(
        description="Recalculate model win/loss/tie records from model_debate_results."
    )
    parser.add_argument("--db-path", default=DB_PATH, help="Path to SQLite DB (default: DB_PATH)")
    parser.add_argument("--dry-run", action="store_true", help="Preview changes without writing anything")
    parser.add_argument("--verbose", action="store_true", help="Print per-model changes")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    db_path = args.db_path
    if not os.path.exists(db_path):
        print(f"ERROR: Database file not found: {db_path}", file=sys.stderr)
        return 2

    # Note: the repository runs schema initialization/migrations (idempotent)
    repo = ModelRepository(db_path)
    rows = fetch_recalc_rows(repo)

    changes = _print_report(rows, verbose=args.verbose)
    if changes == 0:
        print("No changes needed.")
        return 0

    if args.dry_run:
        print("Dry-run: no changes written.")
        return 0

    backup_path = _make_backup(db_path)
    print(f"Backup created: {backup_path}")

    updated = apply_updates(repo, fetch_recalc_rows(repo))
    print(f"Updated {updated} models.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
