"""
Abstract repository interfaces for data access.

These interfaces define the contracts implemented by concrete repositories.
Balance mutations are part of the contract: implementations must apply the
debit as a single conditional update (never read-check-then-write).
"""

from abc import ABC, abstractmethod

from domain.models.debate import Debate
from domain.models.debater_model import DebaterModel, RatingSnapshot
from domain.models.market import BetPool
from domain.models.user_profile import UserProfile
from domain.models.user_vote import UserVote


class IProfileRepository(ABC):
    @abstractmethod
    def get_by_session(self, session_id: str) -> UserProfile | None: ...

    @abstractmethod
    def get_by_user_id(self, user_id: str) -> UserProfile | None: ...

    @abstractmethod
    def create(self, session_id: str, user_id: str | None, starting_points: int) -> UserProfile:
        """Create a profile, or return the existing one if another request created it first."""
        ...

    @abstractmethod
    def increment_total_votes(self, user_id: str) -> None: ...


class IVoteRepository(ABC):
    @abstractmethod
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
        Debit the wager from the profile owning user_id and record the vote,
        in one transaction.

        Raises:
            ValueError: If the balance no longer covers the wager, or the
                session already voted on this debate. Nothing is written.
        """
        ...

    @abstractmethod
    def record_vote(self, debate_id: str, session_id: str, user_id: str, vote: str) -> int:
        """Record a vote without a wager. Raises ValueError on a duplicate vote."""
        ...

    @abstractmethod
    def get_bet_pool(self, debate_id: str) -> BetPool: ...

    @abstractmethod
    def get_votes_for_debate(self, debate_id: str, wagered_only: bool = False) -> list[UserVote]: ...

    @abstractmethod
    def get_vote(self, debate_id: str, session_id: str) -> UserVote | None: ...

    @abstractmethod
    def resolve_vote_atomic(
        self,
        vote_id: int,
        was_correct: bool,
        payout_amount: int,
        superforecaster_min_bets: int,
        superforecaster_min_accuracy: float,
    ) -> dict:
        """
        Record the outcome of a wager and credit any payout, exactly once.

        Crediting a winner also re-evaluates the superforecaster badge.
        Returns {"resolved": False} without side effects if the vote was
        already resolved.
        """
        ...

    @abstractmethod
    def get_linked_user_id(self, session_id: str) -> str | None: ...

    @abstractmethod
    def get_betting_history(self, session_id: str, limit: int) -> list[dict]: ...


class IModelRepository(ABC):
    @abstractmethod
    def add(self, model_id: str, name: str, provider: str) -> None: ...

    @abstractmethod
    def get_by_id(self, model_id: str) -> DebaterModel | None: ...

    @abstractmethod
    def get_all(self, active_only: bool = True) -> list[DebaterModel]: ...

    @abstractmethod
    def reset_ratings(self, model_id: str, crowd: RatingSnapshot, ai_quality: RatingSnapshot) -> None: ...

    @abstractmethod
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
        Persist a rating update for one track and write its history row.

        Returns False without side effects if this (model, track, debate)
        update was already applied.
        """
        ...

    @abstractmethod
    def get_rating_for_debate(
        self, model_id: str, track: str, debate_id: str
    ) -> tuple[RatingSnapshot, RatingSnapshot] | None:
        """Return (before, after) for an update already applied for this debate."""
        ...

    @abstractmethod
    def record_debate_result(
        self, model_id: str, debate_id: str, outcome: str, completed_at: str | None = None
    ) -> bool:
        """
        Count a win/loss/tie and advance last_debate_at, once per (model, debate).

        Returns False if the result was already recorded.
        """
        ...

    @abstractmethod
    def recount_debate_results(self, model_id: str) -> dict: ...

    @abstractmethod
    def get_rating_history(self, model_id: str, track: str | None = None, limit: int = 50) -> list[dict]: ...


class IDebateRepository(ABC):
    @abstractmethod
    def add(
        self,
        debate_id: str,
        pro_model_id: str,
        con_model_id: str,
        topic: str | None = None,
        status: str = "pending",
    ) -> None: ...

    @abstractmethod
    def get_by_id(self, debate_id: str) -> Debate | None: ...

    @abstractmethod
    def update_status(self, debate_id: str, from_statuses: tuple[str, ...], to_status: str) -> bool:
        """Conditionally move a debate between statuses. Returns True if it moved."""
        ...

    @abstractmethod
    def complete(
        self,
        debate_id: str,
        winner: str | None,
        crowd_winner: str | None,
        ai_judge_winner: str | None,
    ) -> bool:
        """
        Transition a non-terminal debate to completed with its verdicts.

        Returns False if the debate was already in a terminal state.
        """
        ...

    @abstractmethod
    def increment_crowd_vote(self, debate_id: str, vote: str) -> Debate | None: ...

    @abstractmethod
    def set_crowd_winner(self, debate_id: str, crowd_winner: str | None) -> None: ...

    @abstractmethod
    def get_completed_since(self, since_iso: str) -> list[Debate]: ...
