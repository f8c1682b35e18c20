"""
Application services layer.

Services orchestrate business operations using repositories and domain services.
"""

from services.debate_resolution_service import DebateResolutionService
from services.prediction_market_service import PredictionMarketService
from services.rating_service import RatingService
from services.user_stats_service import UserStatsService

# Result type for consistent error handling
from services.result import Result

# Service interfaces (ABCs)
from services.interfaces import (
    IDebateResolutionService,
    IPredictionMarketService,
    IRatingService,
    IUserStatsService,
)

__all__ = [
    # Concrete services
    "PredictionMarketService",
    "UserStatsService",
    "RatingService",
    "DebateResolutionService",
    # Result type
    "Result",
    # Interfaces
    "IPredictionMarketService",
    "IUserStatsService",
    "IRatingService",
    "IDebateResolutionService",
]
