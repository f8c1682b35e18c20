"""
Schema and migration management for SQLite database.
"""

import logging
import sqlite3

logger = logging.getLogger("arena.schema")


class SchemaManager:
    """
    Owns schema creation and migrations.

    Call initialize() to ensure schema is present and migrations are applied.
    """

    def __init__(self, db_path: str, use_uri: bool = False):
        self.db_path = db_path
        self.use_uri = use_uri

    def initialize(self) -> None:
        """Create base schema and apply migrations."""
        logger.info(f"Initializing database schema: {self.db_path}")
        with self._connect() as conn:
            cursor = conn.cursor()
            self._create_base_schema(cursor)
            self._create_schema_migrations_table(cursor)
            self._run_migrations(cursor)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, uri=self.use_uri)
        conn.row_factory = sqlite3.Row
        if not self.use_uri:  # Skip WAL for in-memory databases
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        return conn

    def _create_base_schema(self, cursor) -> None:
        # Debating language models and their two rating tracks
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS models (
                model_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                provider TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                crowd_rating REAL NOT NULL DEFAULT 1500,
                crowd_rd REAL NOT NULL DEFAULT 350,
                ai_quality_rating REAL NOT NULL DEFAULT 1500,
                ai_quality_rd REAL NOT NULL DEFAULT 350,
                ai_quality_volatility REAL NOT NULL DEFAULT 0.06,
                total_debates INTEGER NOT NULL DEFAULT 0,
                wins INTEGER NOT NULL DEFAULT 0,
                losses INTEGER NOT NULL DEFAULT 0,
                ties INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

        # Debates (written by the orchestrator, read here)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS debates (
                debate_id TEXT PRIMARY KEY,
                topic TEXT,
                pro_model_id TEXT NOT NULL,
                con_model_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                winner TEXT,
                crowd_winner TEXT,
                ai_judge_winner TEXT,
                crowd_votes_pro INTEGER NOT NULL DEFAULT 0,
                crowd_votes_con INTEGER NOT NULL DEFAULT 0,
                crowd_votes_tie INTEGER NOT NULL DEFAULT 0,
                completed_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (pro_model_id) REFERENCES models(model_id),
                FOREIGN KEY (con_model_id) REFERENCES models(model_id)
            )
            """
        )

        # Point balances and betting statistics
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS user_profiles (
                profile_id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL UNIQUE,
                session_id TEXT NOT NULL UNIQUE,
                debate_points INTEGER NOT NULL DEFAULT 1000 CHECK (debate_points >= 0),
                total_votes INTEGER NOT NULL DEFAULT 0,
                correct_predictions INTEGER NOT NULL DEFAULT 0,
                total_bets_placed INTEGER NOT NULL DEFAULT 0,
                total_bets_won INTEGER NOT NULL DEFAULT 0,
                total_points_wagered INTEGER NOT NULL DEFAULT 0,
                total_points_won INTEGER NOT NULL DEFAULT 0,
                is_superforecaster INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

        # Votes and wagers (wager_amount = 0 means vote only)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS user_votes (
                vote_id INTEGER PRIMARY KEY AUTOINCREMENT,
                debate_id TEXT NOT NULL,
                user_id TEXT,
                session_id TEXT NOT NULL,
                vote TEXT NOT NULL CHECK (vote IN ('pro', 'con', 'tie')),
                wager_amount INTEGER NOT NULL DEFAULT 0,
                odds_at_bet REAL,
                payout_amount INTEGER NOT NULL DEFAULT 0,
                was_correct INTEGER,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (debate_id) REFERENCES debates(debate_id),
                UNIQUE (debate_id, session_id)
            )
            """
        )

        # Rating history
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS model_ratings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                model_id TEXT NOT NULL,
                rating_type TEXT NOT NULL,
                rating REAL NOT NULL,
                rating_deviation REAL NOT NULL,
                volatility REAL,
                debates_count INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (model_id) REFERENCES models(model_id)
            )
            """
        )

    # --- Migration helpers ---

    def _add_column_if_not_exists(self, cursor, table: str, column: str, column_type: str) -> None:
        try:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")
        except sqlite3.OperationalError:
            pass

    def _create_schema_migrations_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    def _run_migrations(self, cursor) -> None:
        applied = {row["name"] for row in cursor.execute("SELECT name FROM schema_migrations")}
        for name, action in self._get_migrations():
            if name in applied:
                continue
            logger.info(f"Applying migration: {name}")
            action(cursor)
            cursor.execute(
                "INSERT INTO schema_migrations (name) VALUES (?)",
                (name,),
            )

    def _get_migrations(self):
        return [
            ("add_indexes_v1", self._migration_add_indexes_v1),
            ("add_last_debate_at_to_models", self._migration_add_last_debate_at_to_models),
            ("add_rating_history_details", self._migration_add_rating_history_details),
            ("create_model_debate_results_table", self._migration_create_model_debate_results_table),
        ]

    def _migration_add_indexes_v1(self, cursor) -> None:
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_debates_status ON debates(status)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_debates_completed_at ON debates(completed_at)"
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_user_votes_debate ON user_votes(debate_id)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_user_votes_session ON user_votes(session_id, created_at)"
        )
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_user_votes_user ON user_votes(user_id)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_model_ratings_model ON model_ratings(model_id, rating_type)"
        )

    def _migration_add_last_debate_at_to_models(self, cursor) -> None:
        # Drives RD growth for models that sit idle
        self._add_column_if_not_exists(cursor, "models", "last_debate_at", "TIMESTAMP")

    def _migration_add_rating_history_details(self, cursor) -> None:
        self._add_column_if_not_exists(cursor, "model_ratings", "debate_id", "TEXT")
        self._add_column_if_not_exists(cursor, "model_ratings", "rating_before", "REAL")
        self._add_column_if_not_exists(cursor, "model_ratings", "rd_before", "REAL")
        self._add_column_if_not_exists(cursor, "model_ratings", "volatility_before", "REAL")
        self._add_column_if_not_exists(cursor, "model_ratings", "score", "REAL")
        self._add_column_if_not_exists(cursor, "model_ratings", "expected_score", "REAL")
        # One update per (model, track, debate); NULL debate_id rows (initial ratings) are exempt
        cursor.execute(
            """
            CREATE UNIQUE INDEX IF NOT EXISTS idx_model_ratings_once_per_debate
            ON model_ratings(model_id, rating_type, debate_id)
            """
        )

    def _migration_create_model_debate_results_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS model_debate_results (
                model_id TEXT NOT NULL,
                debate_id TEXT NOT NULL,
                outcome TEXT NOT NULL CHECK (outcome IN ('win', 'loss', 'tie')),
                recorded_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (model_id, debate_id),
                FOREIGN KEY (model_id) REFERENCES models(model_id),
                FOREIGN KEY (debate_id) REFERENCES debates(debate_id)
            )
            """
        )
