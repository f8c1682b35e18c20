"""
Repository for user profiles (DebatePoints balances and betting counters).
"""

from __future__ import annotations

import logging
import sqlite3

from domain.models.user_profile import UserProfile
from repositories.base_repository import BaseRepository
from repositories.interfaces import IProfileRepository

logger = logging.getLogger("arena.repositories.profile")


class ProfileRepository(BaseRepository, IProfileRepository):
    """
    Handles CRUD operations for the user_profiles table.

    Wager debits and payout credits are applied by VoteRepository inside the
    same transaction as the vote row they belong to.
    """

    _COLUMNS = """
        profile_id, user_id, session_id, debate_points, total_votes,
        correct_predictions, total_bets_placed, total_bets_won,
        total_points_wagered, total_points_won, is_superforecaster,
        created_at, updated_at
    """

    @staticmethod
    def _row_to_profile(row: sqlite3.Row) -> UserProfile:
        return UserProfile(
            profile_id=row["profile_id"],
            user_id=row["user_id"],
            session_id=row["session_id"],
            debate_points=row["debate_points"],
            total_votes=row["total_votes"],
            correct_predictions=row["correct_predictions"],
            total_bets_placed=row["total_bets_placed"],
            total_bets_won=row["total_bets_won"],
            total_points_wagered=row["total_points_wagered"],
            total_points_won=row["total_points_won"],
            is_superforecaster=bool(row["is_superforecaster"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _get_one(self, where: str, param: str) -> UserProfile | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {self._COLUMNS} FROM user_profiles WHERE {where} = ?", (param,))
            row = cursor.fetchone()
            return self._row_to_profile(row) if row else None

    def get_by_session(self, session_id: str) -> UserProfile | None:
        return self._get_one("session_id", session_id)

    def get_by_user_id(self, user_id: str) -> UserProfile | None:
        return self._get_one("user_id", user_id)

    def create(self, session_id: str, user_id: str | None, starting_points: int) -> UserProfile:
        """
        Create a profile with a starting balance.

        Anonymous sessions get a synthetic user id of the form anon_<session_id>.
        A concurrent request creating the same profile is not an error: the
        existing row is returned.

        Args:
            session_id: Session that owns the profile
            user_id: Authenticated user id, if any
            starting_points: Initial DebatePoints balance

        Returns:
            The stored UserProfile
        """
        effective_user_id = user_id or f"anon_{session_id}"
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO user_profiles (user_id, session_id, debate_points)
                VALUES (?, ?, ?)
                """,
                (effective_user_id, session_id, starting_points),
            )
            created = cursor.rowcount > 0

        if created:
            logger.info(f"Created profile for session {session_id} with {starting_points} points")

        profile = self.get_by_session(session_id) or self.get_by_user_id(effective_user_id)
        if profile is None:
            raise ValueError(f"Could not create profile for session {session_id}")
        return profile

    def increment_total_votes(self, user_id: str) -> None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE user_profiles
                SET total_votes = total_votes + 1, updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ?
                """,
                (user_id,),
            )
