"""
Profile lifecycle and betting statistics for prediction market users.
"""

import logging
from dataclasses import asdict, dataclass

from config import BETTING_HISTORY_DEFAULT_LIMIT, STARTING_DEBATE_POINTS
from domain.models.user_profile import UserProfile
from repositories.interfaces import IProfileRepository, IVoteRepository
from services.interfaces import IUserStatsService

logger = logging.getLogger("arena.services.user_stats")


@dataclass
class UserStats:
    """Betting statistics for one profile."""

    debate_points: int
    total_votes: int
    total_bets_placed: int
    total_bets_won: int
    correct_predictions: int
    accuracy: float  # percent, 1 decimal
    roi: float  # percent, 1 decimal
    is_superforecaster: bool
    total_points_wagered: int
    total_points_won: int
    net_profit: int

    def to_dict(self) -> dict:
        return asdict(self)


class UserStatsService(IUserStatsService):
    """
    Owns UserProfile creation and read-side statistics.

    Profiles are created lazily: the first interaction from a session gets a
    starting balance of DebatePoints.
    """

    def __init__(
        self,
        profile_repo: IProfileRepository,
        vote_repo: IVoteRepository,
        starting_points: int | None = None,
        history_limit: int | None = None,
    ):
        self.profile_repo = profile_repo
        self.vote_repo = vote_repo
        self.starting_points = (
            starting_points if starting_points is not None else STARTING_DEBATE_POINTS
        )
        self.history_limit = history_limit if history_limit is not None else BETTING_HISTORY_DEFAULT_LIMIT

    def find_profile(self, session_id: str, user_id: str | None = None) -> UserProfile | None:
        """
        Resolve an existing profile for a session without creating one.

        Lookup order: by session, then by the given user id, then by the
        user id the session last voted as (a session linked to another
        user's profile has no row of its own).
        """
        profile = self.profile_repo.get_by_session(session_id)
        if profile:
            return profile

        linked_user_id = user_id or self.vote_repo.get_linked_user_id(session_id)
        if linked_user_id:
            profile = self.profile_repo.get_by_user_id(linked_user_id)
            if profile:
                logger.debug(f"Session {session_id} linked to existing profile of {linked_user_id}")
        return profile

    def get_or_create_profile(self, session_id: str, user_id: str | None = None) -> UserProfile:
        """Resolve the profile for a session, else create one with the starting balance."""
        profile = self.find_profile(session_id, user_id)
        if profile:
            return profile
        return self.profile_repo.create(session_id, user_id, self.starting_points)

    def get_user_stats(self, session_id: str, user_id: str | None = None) -> UserStats | None:
        """Statistics for a session's profile, or None if it has none yet."""
        profile = self.find_profile(session_id, user_id)
        if profile is None:
            return None
        return UserStats(
            debate_points=profile.debate_points,
            total_votes=profile.total_votes,
            total_bets_placed=profile.total_bets_placed,
            total_bets_won=profile.total_bets_won,
            correct_predictions=profile.correct_predictions,
            accuracy=round(profile.accuracy, 1),
            roi=round(profile.roi, 1),
            is_superforecaster=profile.is_superforecaster,
            total_points_wagered=profile.total_points_wagered,
            total_points_won=profile.total_points_won,
            net_profit=profile.net_profit,
        )

    def get_betting_history(self, session_id: str, limit: int | None = None) -> list[dict]:
        """
        Past wagers for a session, newest first.

        Args:
            session_id: Session to look up
            limit: Maximum number of wagers (defaults to BETTING_HISTORY_DEFAULT_LIMIT)

        Raises:
            ValueError: If limit is not positive
        """
        limit = limit if limit is not None else self.history_limit
        if limit <= 0:
            raise ValueError("limit must be positive")
        return self.vote_repo.get_betting_history(session_id, limit)
