"""
Glicko-2 rating system implementation for debating language models.
"""

import math
from config import (
    CALIBRATION_RD_THRESHOLD,
    INITIAL_RATING,
    INITIAL_RD,
    INITIAL_VOLATILITY,
    MAX_RD,
    RD_DECAY_CONSTANT,
    RD_DECAY_GRACE_PERIOD_WEEKS,
)

from glicko2 import Player

from domain.models.debate import CON, PRO, TIE
from domain.models.debater_model import RatingSnapshot


class ArenaRatingSystem:
    """
    Manages Glicko-2 ratings for debating models.

    Handles:
    - Initial ratings for new models
    - Symmetric two-player updates after a debate
    - RD growth while a model sits idle
    """

    # Glicko-2 constants
    GLICKO2_SCALE = 173.7178  # Rating scale conversion constant

    # Score awarded to a side for each verdict
    WIN_SCORE = 1.0
    TIE_SCORE = 0.5
    LOSS_SCORE = 0.0

    def __init__(
        self,
        initial_rating: float = INITIAL_RATING,
        initial_rd: float = INITIAL_RD,
        initial_volatility: float = INITIAL_VOLATILITY,
    ):
        """
        Initialize rating system.

        Args:
            initial_rating: Rating assigned to a model that has never debated
            initial_rd: Initial rating deviation (uncertainty)
                       Higher = more uncertain (new models)
            initial_volatility: Initial volatility
        """
        self.initial_rating = initial_rating
        self.initial_rd = initial_rd
        self.initial_volatility = initial_volatility

    def initial_snapshot(self) -> RatingSnapshot:
        """Rating triple for a brand new model."""
        return RatingSnapshot(self.initial_rating, self.initial_rd, self.initial_volatility)

    def create_player_from_rating(self, rating: float, rd: float, volatility: float) -> Player:
        """
        Create a Glicko-2 player from stored rating data.

        Args:
            rating: Current Glicko-2 rating
            rd: Current rating deviation
            volatility: Current volatility

        Returns:
            Glicko-2 Player object
        """
        return Player(rating=rating, rd=rd, vol=volatility)

    @staticmethod
    def is_calibrated(rd: float) -> bool:
        """Return True if the model's RD is at or below the calibration threshold."""
        return rd <= CALIBRATION_RD_THRESHOLD

    @staticmethod
    def apply_rd_decay(rd: float, days_since_last_debate: int) -> float:
        """
        Apply Glicko-2 style RD decay over time.

        - Uses c (RD_DECAY_CONSTANT) and time periods in weeks (rounded down).
        - Grace period: no decay for the first RD_DECAY_GRACE_PERIOD_WEEKS.
        - RD is capped at MAX_RD.
        """
        if rd >= MAX_RD:
            return MAX_RD

        if days_since_last_debate < RD_DECAY_GRACE_PERIOD_WEEKS * 7:
            return rd

        weeks = max(0, days_since_last_debate // 7)
        if weeks == 0:
            return rd

        new_rd = math.sqrt(rd * rd + (RD_DECAY_CONSTANT * RD_DECAY_CONSTANT) * weeks)
        return min(MAX_RD, new_rd)

    @classmethod
    def expected_outcome(
        cls, rating: float, rd: float, opponent_rating: float, opponent_rd: float
    ) -> float:
        """
        Estimate the expected score against an opponent, given the opponent's RD.
        """
        g = 1.0 / math.sqrt(
            1.0 + (3.0 * (opponent_rd / cls.GLICKO2_SCALE) ** 2) / (math.pi**2)
        )
        expectation = 1.0 / (
            1.0 + math.exp(-g * (rating - opponent_rating) / cls.GLICKO2_SCALE)
        )
        return min(1.0, max(0.0, expectation))

    @classmethod
    def score_for_side(cls, side: str, winner: str) -> float:
        """
        Convert a verdict into the score for one side.

        Ties count as half a win for both sides.
        """
        if side not in (PRO, CON):
            raise ValueError(f"side must be 'pro' or 'con', got {side!r}")
        if winner == TIE:
            return cls.TIE_SCORE
        if winner not in (PRO, CON):
            raise ValueError(f"winner must be 'pro', 'con' or 'tie', got {winner!r}")
        return cls.WIN_SCORE if winner == side else cls.LOSS_SCORE

    def update_rating(
        self, current: RatingSnapshot, opponent: RatingSnapshot, score: float
    ) -> RatingSnapshot:
        """
        Compute one side's new rating triple after a single debate.

        Args:
            current: This model's pre-debate rating
            opponent: The opponent's pre-debate rating
            score: 1.0 win, 0.5 tie, 0.0 loss

        Returns:
            Updated RatingSnapshot
        """
        player = self.create_player_from_rating(current.rating, current.rd, current.volatility)
        player.update_player([opponent.rating], [opponent.rd], [score])

        # RD should never increase after a debate
        final_rd = min(current.rd, player.rd)
        return RatingSnapshot(rating=player.rating, rd=final_rd, volatility=player.vol)

    def update_ratings_after_debate(
        self,
        pro: RatingSnapshot,
        con: RatingSnapshot,
        winner: str,
    ) -> tuple[RatingSnapshot, RatingSnapshot]:
        """
        Update both debaters' ratings on one track from a single verdict.

        Both updates are computed from the pre-debate snapshots, so the
        order in which sides are processed does not matter.

        Args:
            pro: Pro model's pre-debate rating
            con: Con model's pre-debate rating
            winner: 'pro', 'con' or 'tie'

        Returns:
            Tuple of (new_pro, new_con)

        Raises:
            ValueError: If winner is not a valid verdict
        """
        pro_score = self.score_for_side(PRO, winner)
        con_score = self.score_for_side(CON, winner)

        new_pro = self.update_rating(pro, con, pro_score)
        new_con = self.update_rating(con, pro, con_score)
        return new_pro, new_con

    def win_probability(self, model: RatingSnapshot, opponent: RatingSnapshot) -> float:
        """Probability that model beats opponent on the same track."""
        return self.expected_outcome(model.rating, model.rd, opponent.rating, opponent.rd)

    def rating_to_display(self, rating: float) -> int:
        """
        Convert Glicko-2 rating to display value.

        Args:
            rating: Glicko-2 rating

        Returns:
            Display rating (rounded to integer)
        """
        return int(round(rating))

    def get_rating_uncertainty_percentage(self, rd: float) -> float:
        """
        Convert RD to a percentage uncertainty for display.

        Args:
            rd: Rating deviation

        Returns:
            Uncertainty percentage (0-100)
        """
        # RD ranges from ~30 (very certain) to ~350 (very uncertain)
        # Convert to percentage: 0% = certain, 100% = very uncertain
        uncertainty = min(100, (rd / MAX_RD) * 100)
        return round(uncertainty, 1)
