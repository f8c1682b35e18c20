"""
Domain models - pure data structures representing business entities.
"""

from domain.models.debate import Debate
from domain.models.debater_model import DebaterModel, RatingSnapshot
from domain.models.market import BetPool, BetResult, Odds
from domain.models.user_profile import UserProfile
from domain.models.user_vote import UserVote

__all__ = [
    "Debate",
    "DebaterModel",
    "RatingSnapshot",
    "BetPool",
    "BetResult",
    "Odds",
    "UserProfile",
    "UserVote",
]
