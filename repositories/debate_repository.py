"""
Repository for debates and their lifecycle.
"""

import logging
import sqlite3

from domain.models.debate import OUTCOMES, STATUS_COMPLETED, TERMINAL_STATUSES, Debate
from repositories.base_repository import BaseRepository
from repositories.interfaces import IDebateRepository

logger = logging.getLogger("arena.repositories.debate")


class DebateRepository(BaseRepository, IDebateRepository):
    """
    Handles the debates table.

    Status transitions are conditional updates, so two resolvers racing on
    the same debate cannot both complete it.
    """

    @staticmethod
    def _row_to_debate(row: sqlite3.Row) -> Debate:
        return Debate(
            debate_id=row["debate_id"],
            pro_model_id=row["pro_model_id"],
            con_model_id=row["con_model_id"],
            status=row["status"],
            topic=row["topic"],
            winner=row["winner"],
            crowd_winner=row["crowd_winner"],
            ai_judge_winner=row["ai_judge_winner"],
            crowd_votes_pro=row["crowd_votes_pro"],
            crowd_votes_con=row["crowd_votes_con"],
            crowd_votes_tie=row["crowd_votes_tie"],
            completed_at=row["completed_at"],
            created_at=row["created_at"],
        )

    def add(
        self,
        debate_id: str,
        pro_model_id: str,
        con_model_id: str,
        topic: str | None = None,
        status: str = "pending",
    ) -> None:
        """
        Register a debate.

        Raises:
            ValueError: If the debate already exists or both sides are the same model
        """
        if pro_model_id == con_model_id:
            raise ValueError("A model cannot debate itself")
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO debates (debate_id, topic, pro_model_id, con_model_id, status)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (debate_id, topic, pro_model_id, con_model_id, status),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Debate {debate_id} already exists.") from e

    def get_by_id(self, debate_id: str) -> Debate | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM debates WHERE debate_id = ?", (debate_id,))
            row = cursor.fetchone()
            return self._row_to_debate(row) if row else None

    def update_status(self, debate_id: str, from_statuses: tuple[str, ...], to_status: str) -> bool:
        if not from_statuses:
            return False
        placeholders = ",".join("?" * len(from_statuses))
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE debates SET status = ?
                WHERE debate_id = ? AND status IN ({placeholders})
                """,
                (to_status, debate_id, *from_statuses),
            )
            moved = cursor.rowcount > 0
        if moved:
            logger.info(f"Debate {debate_id} moved to {to_status}")
        return moved

    def complete(
        self,
        debate_id: str,
        winner: str | None,
        crowd_winner: str | None,
        ai_judge_winner: str | None,
    ) -> bool:
        """
        Move a non-terminal debate to completed and record its verdicts.

        Returns:
            True if this call completed the debate, False if it was already
            completed or failed
        """
        for value in (winner, crowd_winner, ai_judge_winner):
            if value is not None and value not in OUTCOMES:
                raise ValueError(f"Invalid verdict: {value}")

        placeholders = ",".join("?" * len(TERMINAL_STATUSES))
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                UPDATE debates
                SET status = ?, winner = ?, crowd_winner = ?, ai_judge_winner = ?,
                    completed_at = ?
                WHERE debate_id = ? AND status NOT IN ({placeholders})
                """,
                (
                    STATUS_COMPLETED,
                    winner,
                    crowd_winner,
                    ai_judge_winner,
                    self.utc_now_iso(),
                    debate_id,
                    *TERMINAL_STATUSES,
                ),
            )
            return cursor.rowcount > 0

    def increment_crowd_vote(self, debate_id: str, vote: str) -> Debate | None:
        """Add one crowd vote to the debate's tally and return the updated debate."""
        if vote not in OUTCOMES:
            raise ValueError(f"Invalid vote: {vote}")
        column = f"crowd_votes_{vote}"
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE debates SET {column} = {column} + 1 WHERE debate_id = ?",
                (debate_id,),
            )
            if cursor.rowcount == 0:
                return None
            cursor.execute("SELECT * FROM debates WHERE debate_id = ?", (debate_id,))
            return self._row_to_debate(cursor.fetchone())

    def set_crowd_winner(self, debate_id: str, crowd_winner: str | None) -> None:
        if crowd_winner is not None and crowd_winner not in OUTCOMES:
            raise ValueError(f"Invalid crowd winner: {crowd_winner}")
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE debates SET crowd_winner = ? WHERE debate_id = ?",
                (crowd_winner, debate_id),
            )

    def get_completed_since(self, since_iso: str) -> list[Debate]:
        """Completed debates with completed_at at or after since_iso, oldest first."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM debates
                WHERE status = ? AND completed_at >= ?
                ORDER BY completed_at ASC, debate_id ASC
                """,
                (STATUS_COMPLETED, since_iso),
            )
            return [self._row_to_debate(row) for row in cursor.fetchall()]
