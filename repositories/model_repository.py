"""
Repository for debating models, their ratings and rating history.
"""

import logging
import sqlite3

from domain.models.debater_model import AI_QUALITY, CROWD, RATING_TRACKS, DebaterModel, RatingSnapshot
from repositories.base_repository import BaseRepository
from repositories.interfaces import IModelRepository

logger = logging.getLogger("arena.repositories.model")


class ModelRepository(BaseRepository, IModelRepository):
    """
    Handles all model-related database operations.

    Responsibilities:
    - CRUD operations for models
    - Per-track Glicko-2 rating persistence
    - Rating history (one row per model, track and debate)
    - Win/loss/tie bookkeeping
    """

    VALID_OUTCOMES = {"win", "loss", "tie"}

    @staticmethod
    def _row_to_model(row: sqlite3.Row) -> DebaterModel:
        return DebaterModel(
            model_id=row["model_id"],
            name=row["name"],
            provider=row["provider"],
            crowd_rating=row["crowd_rating"],
            crowd_rd=row["crowd_rd"],
            ai_quality_rating=row["ai_quality_rating"],
            ai_quality_rd=row["ai_quality_rd"],
            ai_quality_volatility=row["ai_quality_volatility"],
            total_debates=row["total_debates"],
            wins=row["wins"],
            losses=row["losses"],
            ties=row["ties"],
            is_active=bool(row["is_active"]),
            last_debate_at=row["last_debate_at"],
        )

    @staticmethod
    def _validate_track(track: str) -> None:
        if track not in RATING_TRACKS:
            raise ValueError(f"Unknown rating track: {track}")

    def add(self, model_id: str, name: str, provider: str) -> None:
        """
        Register a new debating model with default ratings.

        Raises:
            ValueError: If a model with this id already exists
        """
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "INSERT INTO models (model_id, name, provider) VALUES (?, ?, ?)",
                    (model_id, name, provider),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Model {model_id} already exists.") from e

    def get_by_id(self, model_id: str) -> DebaterModel | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM models WHERE model_id = ?", (model_id,))
            row = cursor.fetchone()
            return self._row_to_model(row) if row else None

    def get_all(self, active_only: bool = True) -> list[DebaterModel]:
        query = "SELECT * FROM models"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY name ASC"
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query)
            return [self._row_to_model(row) for row in cursor.fetchall()]

    def reset_ratings(self, model_id: str, crowd: RatingSnapshot, ai_quality: RatingSnapshot) -> None:
        """
        Overwrite both rating tracks and write a debate-less history row for each.

        Raises:
            ValueError: If the model does not exist
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE models
                SET crowd_rating = ?, crowd_rd = ?,
                    ai_quality_rating = ?, ai_quality_rd = ?, ai_quality_volatility = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE model_id = ?
                """,
                (
                    crowd.rating,
                    crowd.rd,
                    ai_quality.rating,
                    ai_quality.rd,
                    ai_quality.volatility,
                    model_id,
                ),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Model {model_id} not found")

            for track, snapshot in ((CROWD, crowd), (AI_QUALITY, ai_quality)):
                cursor.execute(
                    """
                    INSERT INTO model_ratings
                    (model_id, rating_type, rating, rating_deviation, volatility, debates_count)
                    VALUES (?, ?, ?, ?, ?, 0)
                    """,
                    (model_id, track, snapshot.rating, snapshot.rd, snapshot.volatility),
                )

    def apply_rating_update(
        self,
        model_id: str,
        track: str,
        debate_id: str,
        before: RatingSnapshot,
        after: RatingSnapshot,
        score: float,
        expected_score: float,
    ) -> bool:
        """
        Persist a rating update for one track together with its history row.

        The history row is keyed on (model, track, debate); if it already
        exists the whole transaction is abandoned and the stored rating is
        left untouched.

        Returns:
            True if applied, False if this update was already recorded
        """
        self._validate_track(track)
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT COUNT(*) AS n FROM model_ratings
                WHERE model_id = ? AND rating_type = ? AND debate_id IS NOT NULL
                """,
                (model_id, track),
            )
            debates_count = cursor.fetchone()["n"] + 1

            try:
                cursor.execute(
                    """
                    INSERT INTO model_ratings
                    (model_id, rating_type, rating, rating_deviation, volatility, debates_count,
                     debate_id, rating_before, rd_before, volatility_before, score, expected_score)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        model_id,
                        track,
                        after.rating,
                        after.rd,
                        after.volatility,
                        debates_count,
                        debate_id,
                        before.rating,
                        before.rd,
                        before.volatility,
                        score,
                        expected_score,
                    ),
                )
            except sqlite3.IntegrityError:
                logger.info(f"Rating update for {model_id}/{track}/{debate_id} already applied")
                return False

            if track == CROWD:
                # Crowd volatility is not persisted
                cursor.execute(
                    """
                    UPDATE models
                    SET crowd_rating = ?, crowd_rd = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE model_id = ?
                    """,
                    (after.rating, after.rd, model_id),
                )
            else:
                cursor.execute(
                    """
                    UPDATE models
                    SET ai_quality_rating = ?, ai_quality_rd = ?, ai_quality_volatility = ?,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE model_id = ?
                    """,
                    (after.rating, after.rd, after.volatility, model_id),
                )
            if cursor.rowcount == 0:
                raise ValueError(f"Model {model_id} not found")
        return True

    def get_rating_for_debate(
        self, model_id: str, track: str, debate_id: str
    ) -> tuple[RatingSnapshot, RatingSnapshot] | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT rating_before, rd_before, volatility_before,
                       rating, rating_deviation, volatility
                FROM model_ratings
                WHERE model_id = ? AND rating_type = ? AND debate_id = ?
                """,
                (model_id, track, debate_id),
            )
            row = cursor.fetchone()
            if not row:
                return None
            before = RatingSnapshot(row["rating_before"], row["rd_before"], row["volatility_before"])
            after = RatingSnapshot(row["rating"], row["rating_deviation"], row["volatility"])
            return before, after

    def record_debate_result(
        self, model_id: str, debate_id: str, outcome: str, completed_at: str | None = None
    ) -> bool:
        """
        Count a win, loss or tie for a model, at most once per debate.

        Also bumps total_debates and moves last_debate_at forward to the
        debate's completion time (never backwards, so rating an older debate
        late cannot rewind it).

        Returns:
            True if recorded, False if this debate was already counted
        """
        if outcome not in self.VALID_OUTCOMES:
            raise ValueError(f"Invalid outcome: {outcome}")
        column = {"win": "wins", "loss": "losses", "tie": "ties"}[outcome]

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO model_debate_results (model_id, debate_id, outcome)
                VALUES (?, ?, ?)
                """,
                (model_id, debate_id, outcome),
            )
            if cursor.rowcount == 0:
                return False

            cursor.execute(
                f"""
                UPDATE models
                SET {column} = {column} + 1,
                    total_debates = total_debates + 1,
                    last_debate_at = MAX(COALESCE(last_debate_at, ''), ?),
                    updated_at = CURRENT_TIMESTAMP
                WHERE model_id = ?
                """,
                (completed_at or self.utc_now_iso(), model_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Model {model_id} not found")
        return True

    def recount_debate_results(self, model_id: str) -> dict:
        """
        Rebuild wins/losses/ties/total_debates from the per-debate results table.

        Returns:
            Dict with the recomputed counters
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN outcome = 'win' THEN 1 ELSE 0 END), 0) AS wins,
                    COALESCE(SUM(CASE WHEN outcome = 'loss' THEN 1 ELSE 0 END), 0) AS losses,
                    COALESCE(SUM(CASE WHEN outcome = 'tie' THEN 1 ELSE 0 END), 0) AS ties
                FROM model_debate_results
                WHERE model_id = ?
                """,
                (model_id,),
            )
            row = cursor.fetchone()
            counts = {"wins": row["wins"], "losses": row["losses"], "ties": row["ties"]}
            counts["total_debates"] = counts["wins"] + counts["losses"] + counts["ties"]
            cursor.execute(
                """
                UPDATE models
                SET wins = ?, losses = ?, ties = ?, total_debates = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE model_id = ?
                """,
                (
                    counts["wins"],
                    counts["losses"],
                    counts["ties"],
                    counts["total_debates"],
                    model_id,
                ),
            )
        return counts

    def get_rating_history(self, model_id: str, track: str | None = None, limit: int = 50) -> list[dict]:
        """
        Get rating history rows for a model, newest first.

        Args:
            model_id: Model to look up
            track: Restrict to 'crowd' or 'ai_quality'; both when None
            limit: Maximum number of rows
        """
        params: list = [model_id]
        query = """
            SELECT id, model_id, rating_type, rating, rating_deviation, volatility,
                   debates_count, debate_id, rating_before, rd_before, volatility_before,
                   score, expected_score, created_at
            FROM model_ratings
            WHERE model_id = ?
        """
        if track is not None:
            self._validate_track(track)
            query += " AND rating_type = ?"
            params.append(track)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]
