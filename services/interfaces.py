"""
Service layer interfaces (ABCs).

These abstract base classes define the contracts for the arena's services.
Concrete services inherit from their interface so callers (and test
doubles) can depend on the contract alone.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.models.debater_model import DebaterModel, RatingSnapshot
    from domain.models.market import BetPool, BetResult, Odds
    from domain.models.user_profile import UserProfile
    from services.debate_resolution_service import ResolutionOutcome
    from services.rating_service import LeaderboardEntry
    from services.result import Result
    from services.user_stats_service import UserStats


class IPredictionMarketService(ABC):
    """Interface for DebatePoints wagering on debate outcomes."""

    @abstractmethod
    def get_bet_pool(self, debate_id: str) -> "BetPool":
        """Get the current wagers per outcome."""
        ...

    @abstractmethod
    def get_current_odds(self, debate_id: str) -> "Odds":
        """Get the odds a new wager would be priced at."""
        ...

    @abstractmethod
    def place_bet(
        self,
        debate_id: str,
        session_id: str,
        vote: str,
        wager_amount: int,
        user_id: str | None = None,
    ) -> "BetResult":
        """Validate and record a wager, debiting the bettor atomically."""
        ...

    @abstractmethod
    def cast_vote(
        self,
        debate_id: str,
        session_id: str,
        vote: str,
        wager_amount: int = 0,
        user_id: str | None = None,
    ) -> "Result[dict]":
        """Cast a crowd vote, optionally backed by a wager."""
        ...

    @abstractmethod
    def distribute_payout(self, debate_id: str, winner: str) -> "Result[dict]":
        """Settle all wagers on a resolved debate (idempotent)."""
        ...


class IUserStatsService(ABC):
    """Interface for profile lifecycle and betting statistics."""

    @abstractmethod
    def get_or_create_profile(self, session_id: str, user_id: str | None = None) -> "UserProfile":
        """Resolve a session's profile, creating it with the starting balance if needed."""
        ...

    @abstractmethod
    def get_user_stats(self, session_id: str, user_id: str | None = None) -> "UserStats | None":
        """Get betting statistics for a session, or None if it has no profile."""
        ...

    @abstractmethod
    def get_betting_history(self, session_id: str, limit: int | None = None) -> list[dict]:
        """Get past wagers, newest first."""
        ...


class IRatingService(ABC):
    """Interface for dual-track model ratings."""

    @abstractmethod
    def initialize_model_rating(self, model_id: str) -> "Result[DebaterModel]":
        """Reset a model's ratings to the initial triple."""
        ...

    @abstractmethod
    def get_rating(self, model_id: str, track: str) -> "RatingSnapshot | None":
        """Get a model's rating on one track."""
        ...

    @abstractmethod
    def update_ratings(self, debate_id: str) -> "Result[dict]":
        """Apply both tracks' updates for a completed debate (idempotent)."""
        ...

    @abstractmethod
    def run_batch_update(self, since: datetime | None = None) -> dict:
        """Update ratings for all debates completed since a cutoff."""
        ...

    @abstractmethod
    def controversy_index(self, model_id: str) -> float | None:
        """Gap between a model's crowd and AI-quality ratings."""
        ...

    @abstractmethod
    def charismatic_liar_index(self, model_id: str) -> float | None:
        """How much more persuasive than sound a model is rated."""
        ...

    @abstractmethod
    def win_probability(self, model_id: str, opponent_id: str, track: str = "crowd") -> float | None:
        """Expected score of one model against another."""
        ...

    @abstractmethod
    def get_leaderboard(
        self,
        sort_by: str = "crowd_rating",
        filter_controversial: bool = False,
        limit: int | None = None,
    ) -> "list[LeaderboardEntry]":
        """Get ranked models."""
        ...

    @abstractmethod
    def get_model_stats(self, model_id: str, history_limit: int = 20) -> dict | None:
        """Get one model's standing and rating history."""
        ...


class IDebateResolutionService(ABC):
    """Interface for consuming debate verdicts."""

    @abstractmethod
    def resolve(
        self,
        debate_id: str,
        winner: str,
        crowd_winner: str | None = None,
        ai_judge_winner: str | None = None,
    ) -> "Result[ResolutionOutcome]":
        """Complete a debate, then settle payouts and ratings."""
        ...

    @abstractmethod
    def fail_debate(self, debate_id: str) -> "Result[bool]":
        """Mark a debate as failed."""
        ...
