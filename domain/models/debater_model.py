"""
Debater model domain model (a language model competing in debates).
"""

from dataclasses import dataclass

# Rating tracks
CROWD = "crowd"
AI_QUALITY = "ai_quality"
RATING_TRACKS = (CROWD, AI_QUALITY)


@dataclass(frozen=True)
class RatingSnapshot:
    """A Glicko-2 (rating, rd, volatility) triple on one track."""

    rating: float
    rd: float
    volatility: float


@dataclass
class DebaterModel:
    """
    A language model with two independent skill ratings.

    Crowd ratings come from human votes, AI-quality ratings from the AI
    judge. Only the AI-quality track persists its own volatility.
    """

    model_id: str
    name: str
    provider: str
    crowd_rating: float = 1500.0
    crowd_rd: float = 350.0
    ai_quality_rating: float = 1500.0
    ai_quality_rd: float = 350.0
    ai_quality_volatility: float = 0.06
    total_debates: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    is_active: bool = True
    last_debate_at: str | None = None  # ISO timestamp

    @property
    def win_rate(self) -> float:
        if self.total_debates <= 0:
            return 0.0
        return self.wins / self.total_debates

    def get_rating(self, track: str, crowd_volatility: float = 0.06) -> RatingSnapshot:
        """Return the rating triple for a track."""
        if track == CROWD:
            return RatingSnapshot(self.crowd_rating, self.crowd_rd, crowd_volatility)
        if track == AI_QUALITY:
            return RatingSnapshot(
                self.ai_quality_rating, self.ai_quality_rd, self.ai_quality_volatility
            )
        raise ValueError(f"Unknown rating track: {track}")
