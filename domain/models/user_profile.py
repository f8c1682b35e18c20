"""
UserProfile domain model.
"""

from dataclasses import dataclass


@dataclass
class UserProfile:
    """
    Point balance and cumulative betting statistics for a session or user.

    This is a pure domain model with no infrastructure dependencies.
    """

    session_id: str
    user_id: str
    debate_points: int = 1000
    total_votes: int = 0
    total_bets_placed: int = 0
    total_bets_won: int = 0
    correct_predictions: int = 0
    total_points_wagered: int = 0
    total_points_won: int = 0
    is_superforecaster: bool = False
    profile_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def accuracy(self) -> float:
        """Correct predictions as a percentage of bets placed (0 with no bets)."""
        if self.total_bets_placed <= 0:
            return 0.0
        return self.correct_predictions / self.total_bets_placed * 100

    @property
    def roi(self) -> float:
        """Return on points wagered, as a percentage (0 if never wagered)."""
        if self.total_points_wagered <= 0:
            return 0.0
        return (self.total_points_won - self.total_points_wagered) / self.total_points_wagered * 100

    @property
    def net_profit(self) -> int:
        return self.total_points_won - self.total_points_wagered
