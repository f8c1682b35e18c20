"""
Repository layer for data access abstraction.
"""

from repositories.base_repository import BaseRepository
from repositories.debate_repository import DebateRepository
from repositories.interfaces import (
    IDebateRepository,
    IModelRepository,
    IProfileRepository,
    IVoteRepository,
)
from repositories.model_repository import ModelRepository
from repositories.profile_repository import ProfileRepository
from repositories.vote_repository import VoteRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "VoteRepository",
    "ModelRepository",
    "DebateRepository",
    "IProfileRepository",
    "IVoteRepository",
    "IModelRepository",
    "IDebateRepository",
]
