"""
Repository for votes and wagers on debates.
"""

from __future__ import annotations

import logging
import sqlite3

from domain.models.market import BetPool
from domain.models.user_vote import UserVote
from repositories.base_repository import BaseRepository
from repositories.interfaces import IVoteRepository

logger = logging.getLogger("arena.repositories.vote")


class VoteRepository(BaseRepository, IVoteRepository):
    """
    Handles the user_votes table and the balance movements tied to it.

    Every balance change happens in the same transaction as the vote row it
    belongs to, so a failure leaves neither behind.
    """

    VALID_VOTES = {"pro", "con", "tie"}

    _COLUMNS = """
        vote_id, debate_id, user_id, session_id, vote, wager_amount,
        odds_at_bet, payout_amount, was_correct, created_at
    """

    @staticmethod
    def _row_to_vote(row: sqlite3.Row) -> UserVote:
        was_correct = row["was_correct"]
        return UserVote(
            vote_id=row["vote_id"],
            debate_id=row["debate_id"],
            user_id=row["user_id"],
            session_id=row["session_id"],
            vote=row["vote"],
            wager_amount=row["wager_amount"],
            odds_at_bet=row["odds_at_bet"],
            payout_amount=row["payout_amount"],
            was_correct=None if was_correct is None else bool(was_correct),
            created_at=row["created_at"],
        )

    def _validate_vote(self, vote: str) -> None:
        if vote not in self.VALID_VOTES:
            raise ValueError(f"Invalid vote: {vote}. Must be one of {sorted(self.VALID_VOTES)}")

    def place_bet_atomic(
        self,
        debate_id: str,
        session_id: str,
        user_id: str,
        vote: str,
        wager_amount: int,
        odds_at_bet: float,
    ) -> dict:
        """
        Debit a wager and record the vote atomically.

        The debit is a conditional decrement guarded by a sufficient-balance
        predicate, so two concurrent wagers can never overdraw a profile.

        Args:
            debate_id: Debate being wagered on
            session_id: Session the vote is cast from
            user_id: user_id of the profile being debited
            vote: 'pro', 'con' or 'tie'
            wager_amount: Points to wager (must be > 0)
            odds_at_bet: Odds snapshot that will price the payout

        Returns:
            Dict with vote_id, new_balance and odds_at_bet

        Raises:
            ValueError: On insufficient balance or a duplicate vote
        """
        self._validate_vote(vote)
        if wager_amount <= 0:
            raise ValueError(f"Wager amount must be positive, got {wager_amount}")

        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                """
                UPDATE user_profiles
                SET debate_points = debate_points - ?,
                    total_bets_placed = total_bets_placed + 1,
                    total_points_wagered = total_points_wagered + ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ? AND debate_points >= ?
                """,
                (wager_amount, wager_amount, user_id, wager_amount),
            )
            if cursor.rowcount == 0:
                raise ValueError("Insufficient DebatePoints for wager")

            try:
                cursor.execute(
                    """
                    INSERT INTO user_votes
                    (debate_id, user_id, session_id, vote, wager_amount, odds_at_bet)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (debate_id, user_id, session_id, vote, wager_amount, odds_at_bet),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError("You have already voted on this debate") from e
            vote_id = cursor.lastrowid

            cursor.execute(
                "SELECT debate_points FROM user_profiles WHERE user_id = ?",
                (user_id,),
            )
            new_balance = cursor.fetchone()["debate_points"]

        return {"vote_id": vote_id, "new_balance": new_balance, "odds_at_bet": odds_at_bet}

    def record_vote(self, debate_id: str, session_id: str, user_id: str, vote: str) -> int:
        """Record a vote with no wager attached. Returns the new vote_id."""
        self._validate_vote(vote)
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO user_votes (debate_id, user_id, session_id, vote, wager_amount)
                    VALUES (?, ?, ?, ?, 0)
                    """,
                    (debate_id, user_id, session_id, vote),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError("You have already voted on this debate") from e
            return cursor.lastrowid

    def get_bet_pool(self, debate_id: str) -> BetPool:
        """Sum current wagers per outcome. Recomputed from rows on every call."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN vote = 'pro' THEN wager_amount ELSE 0 END), 0) as pro,
                    COALESCE(SUM(CASE WHEN vote = 'con' THEN wager_amount ELSE 0 END), 0) as con,
                    COALESCE(SUM(CASE WHEN vote = 'tie' THEN wager_amount ELSE 0 END), 0) as tie
                FROM user_votes
                WHERE debate_id = ? AND wager_amount > 0
                """,
                (debate_id,),
            )
            row = cursor.fetchone()
            return BetPool(pro_total=row["pro"], con_total=row["con"], tie_total=row["tie"])

    def get_votes_for_debate(self, debate_id: str, wagered_only: bool = False) -> list[UserVote]:
        query = f"SELECT {self._COLUMNS} FROM user_votes WHERE debate_id = ?"
        if wagered_only:
            query += " AND wager_amount > 0"
        query += " ORDER BY vote_id ASC"
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, (debate_id,))
            return [self._row_to_vote(row) for row in cursor.fetchall()]

    def get_vote(self, debate_id: str, session_id: str) -> UserVote | None:
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {self._COLUMNS} FROM user_votes WHERE debate_id = ? AND session_id = ?",
                (debate_id, session_id),
            )
            row = cursor.fetchone()
            return self._row_to_vote(row) if row else None

    def get_linked_user_id(self, session_id: str) -> str | None:
        """user_id the session most recently voted or wagered as, if any."""
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT user_id FROM user_votes
                WHERE session_id = ? AND user_id IS NOT NULL
                ORDER BY vote_id DESC
                LIMIT 1
                """,
                (session_id,),
            )
            row = cursor.fetchone()
            return row["user_id"] if row else None

    def resolve_vote_atomic(
        self,
        vote_id: int,
        was_correct: bool,
        payout_amount: int,
        superforecaster_min_bets: int,
        superforecaster_min_accuracy: float,
    ) -> dict:
        """
        Settle one wager: mark correctness, credit the payout, check the badge.

        Guarded by was_correct IS NULL, so a retry after a partial failure
        never pays the same vote twice.

        Returns:
            Dict with resolved (bool), session_id, payout_amount and
            superforecaster_awarded
        """
        with self.atomic_transaction() as conn:
            cursor = conn.cursor()

            cursor.execute(
                """
                UPDATE user_votes
                SET was_correct = ?, payout_amount = ?
                WHERE vote_id = ? AND was_correct IS NULL
                """,
                (1 if was_correct else 0, payout_amount, vote_id),
            )
            if cursor.rowcount == 0:
                return {"resolved": False, "vote_id": vote_id}

            cursor.execute("SELECT session_id, user_id FROM user_votes WHERE vote_id = ?", (vote_id,))
            row = cursor.fetchone()
            session_id, user_id = row["session_id"], row["user_id"]

            awarded = False
            if payout_amount > 0:
                cursor.execute(
                    """
                    UPDATE user_profiles
                    SET debate_points = debate_points + ?,
                        total_bets_won = total_bets_won + 1,
                        total_points_won = total_points_won + ?,
                        correct_predictions = correct_predictions + 1,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE user_id = ?
                    """,
                    (payout_amount, payout_amount, user_id),
                )
                # One-way latch: never cleared once set
                cursor.execute(
                    """
                    UPDATE user_profiles
                    SET is_superforecaster = 1, updated_at = CURRENT_TIMESTAMP
                    WHERE user_id = ?
                      AND is_superforecaster = 0
                      AND total_bets_placed >= ?
                      AND CAST(correct_predictions AS REAL) / total_bets_placed >= ?
                    """,
                    (user_id, superforecaster_min_bets, superforecaster_min_accuracy),
                )
                awarded = cursor.rowcount > 0

        return {
            "resolved": True,
            "vote_id": vote_id,
            "session_id": session_id,
            "user_id": user_id,
            "payout_amount": payout_amount,
            "superforecaster_awarded": awarded,
        }

    def get_betting_history(self, session_id: str, limit: int) -> list[dict]:
        """
        Get a session's wagers, newest first, with debate context.

        Args:
            session_id: Bettor's session
            limit: Maximum number of records to return

        Returns:
            List of dicts with topic, vote, wager, odds, payout, correctness and profit
        """
        with self.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT v.vote_id, v.debate_id, v.vote, v.wager_amount, v.odds_at_bet,
                       v.payout_amount, v.was_correct, v.created_at,
                       d.topic, d.status AS debate_status
                FROM user_votes v
                LEFT JOIN debates d ON v.debate_id = d.debate_id
                WHERE v.session_id = ? AND v.wager_amount > 0
                ORDER BY v.created_at DESC, v.vote_id DESC
                LIMIT ?
                """,
                (session_id, limit),
            )
            history = []
            for row in cursor.fetchall():
                was_correct = row["was_correct"]
                history.append(
                    {
                        "vote_id": row["vote_id"],
                        "debate_id": row["debate_id"],
                        "topic": row["topic"] or "Unknown topic",
                        "vote": row["vote"],
                        "wager_amount": row["wager_amount"],
                        "odds_at_bet": row["odds_at_bet"],
                        "payout_amount": row["payout_amount"],
                        "was_correct": None if was_correct is None else bool(was_correct),
                        "profit": row["payout_amount"] - row["wager_amount"],
                        "created_at": row["created_at"],
                        "debate_status": row["debate_status"],
                    }
                )
            return history
