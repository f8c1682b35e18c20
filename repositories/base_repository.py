"""
Base repository with common database operations.
"""

import logging
import sqlite3
from abc import ABC
from contextlib import contextmanager
from datetime import datetime, timezone

from infrastructure.schema_manager import SchemaManager

logger = logging.getLogger("arena.repositories")


class BaseRepository(ABC):
    """
    Base class for all arena repositories.

    Owns connection setup for a single SQLite file and the two ways of
    writing to it: plain auto-committing connections and write-locked
    transactions for anything that moves DebatePoints.
    """

    # Milliseconds a connection waits on a locked database before failing
    BUSY_TIMEOUT_MS = 5000

    # DB paths whose schema has been created/migrated in this process
    _schema_initialized_paths: set[str] = set()

    def __init__(self, db_path: str):
        """
        Args:
            db_path: Path to SQLite database file; schema is created on first use
        """
        self.db_path = db_path
        if db_path not in BaseRepository._schema_initialized_paths:
            SchemaManager(db_path).initialize()
            BaseRepository._schema_initialized_paths.add(db_path)

    @staticmethod
    def utc_now_iso() -> str:
        """Current UTC time as an ISO-8601 string (sortable as text)."""
        return datetime.now(timezone.utc).isoformat()

    def get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout={self.BUSY_TIMEOUT_MS}")
        return conn

    @contextmanager
    def connection(self):
        """
        Yield a connection that commits on success and rolls back on error.

        Fine for reads and single-statement writes. Anything that must read
        and write consistently belongs in atomic_transaction().
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def atomic_transaction(self):
        """
        Yield a connection inside BEGIN IMMEDIATE.

        The write lock is taken before the first statement, so two wagers or
        two payouts for the same profile are serialized instead of
        interleaving. Raising inside the block rolls everything back,
        including balance changes already issued.

        Usage:
            with self.atomic_transaction() as conn:
                cursor = conn.cursor()
                cursor.execute("UPDATE user_profiles SET ... WHERE debate_points >= ?", ...)
                if cursor.rowcount == 0:
                    raise ValueError("Insufficient DebatePoints")
        """
        conn = self.get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
