"""
Entry point for the "debate resolved" event: completes the debate, then
settles the market and updates ratings.
"""

import logging
from dataclasses import dataclass

from config import CROWD_WINNER_MIN_VOTES, RATINGS_ENABLED
from domain.models.debate import (
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    is_valid_outcome,
)
from domain.services.crowd_tally_service import determine_crowd_winner
from repositories.interfaces import IDebateRepository
from services import error_codes
from services.interfaces import IDebateResolutionService
from services.prediction_market_service import PredictionMarketService
from services.rating_service import RatingService
from services.result import Result

logger = logging.getLogger("arena.services.resolution")


@dataclass
class ResolutionOutcome:
    """What happened when a debate was resolved. Each step reports separately."""

    debate_id: str
    winner: str
    crowd_winner: str | None
    ai_judge_winner: str | None
    newly_completed: bool
    payout: Result | None = None
    ratings: Result | None = None

    @property
    def success(self) -> bool:
        steps = [step for step in (self.payout, self.ratings) if step is not None]
        return all(step.success for step in steps)


class DebateResolutionService(IDebateResolutionService):
    """
    Consumes final verdicts from the debate orchestrator.

    The debate moves to completed at most once. Settlement (payouts, then
    ratings) runs after the transition and can be re-run by calling resolve
    again: both steps skip work that was already done.
    """

    def __init__(
        self,
        debate_repo: IDebateRepository,
        market_service: PredictionMarketService,
        rating_service: RatingService,
        ratings_enabled: bool | None = None,
        crowd_winner_min_votes: int | None = None,
    ):
        self.debate_repo = debate_repo
        self.market_service = market_service
        self.rating_service = rating_service
        self.ratings_enabled = ratings_enabled if ratings_enabled is not None else RATINGS_ENABLED
        self.crowd_winner_min_votes = (
            crowd_winner_min_votes if crowd_winner_min_votes is not None else CROWD_WINNER_MIN_VOTES
        )

    def start(self, debate_id: str) -> Result[bool]:
        """Move a pending debate to in_progress."""
        if self.debate_repo.get_by_id(debate_id) is None:
            return Result.fail(f"Debate {debate_id} not found", code=error_codes.DEBATE_NOT_FOUND)
        moved = self.debate_repo.update_status(debate_id, (STATUS_PENDING,), STATUS_IN_PROGRESS)
        if not moved:
            return Result.fail(f"Debate {debate_id} is not pending", code=error_codes.STATE_ERROR)
        return Result.ok(True)

    def resolve(
        self,
        debate_id: str,
        winner: str,
        crowd_winner: str | None = None,
        ai_judge_winner: str | None = None,
    ) -> Result[ResolutionOutcome]:
        """
        Complete a debate and settle everything that depends on its verdict.

        If crowd_winner is not given, it is derived from the debate's vote
        tally. Calling this for a debate that is already completed re-runs
        settlement with the stored verdicts; the verdicts themselves never
        change once recorded.

        Args:
            debate_id: Debate to resolve
            winner: Final outcome used for the market ('pro', 'con' or 'tie')
            crowd_winner: Crowd verdict used for the crowd rating track
            ai_judge_winner: Judge verdict used for the AI-quality rating track

        Returns:
            Result with a ResolutionOutcome; failed if any step failed
        """
        if not is_valid_outcome(winner):
            return Result.fail(
                f"Invalid winner '{winner}'. Must be pro, con or tie.", code=error_codes.INVALID_OUTCOME
            )
        for label, value in (("crowd_winner", crowd_winner), ("ai_judge_winner", ai_judge_winner)):
            if value is not None and not is_valid_outcome(value):
                return Result.fail(
                    f"Invalid {label} '{value}'. Must be pro, con or tie.",
                    code=error_codes.INVALID_OUTCOME,
                )

        debate = self.debate_repo.get_by_id(debate_id)
        if debate is None:
            return Result.fail(f"Debate {debate_id} not found", code=error_codes.DEBATE_NOT_FOUND)
        if debate.status == STATUS_FAILED:
            return Result.fail(f"Debate {debate_id} has failed", code=error_codes.STATE_ERROR)

        if crowd_winner is None:
            crowd_winner = determine_crowd_winner(
                debate.crowd_votes_pro,
                debate.crowd_votes_con,
                debate.crowd_votes_tie,
                min_votes=self.crowd_winner_min_votes,
            )

        newly_completed = self.debate_repo.complete(debate_id, winner, crowd_winner, ai_judge_winner)
        if newly_completed:
            logger.info(
                f"Debate {debate_id} completed: winner={winner} crowd={crowd_winner} judge={ai_judge_winner}"
            )
        else:
            debate = self.debate_repo.get_by_id(debate_id)
            if debate is None or not debate.is_completed:
                return Result.fail(
                    f"Debate {debate_id} could not be completed", code=error_codes.STATE_ERROR
                )
            logger.info(f"Debate {debate_id} already completed; re-running settlement")
            winner = debate.winner
            crowd_winner = debate.crowd_winner
            ai_judge_winner = debate.ai_judge_winner

        outcome = ResolutionOutcome(
            debate_id=debate_id,
            winner=winner,
            crowd_winner=crowd_winner,
            ai_judge_winner=ai_judge_winner,
            newly_completed=newly_completed,
        )

        if winner is not None:
            outcome.payout = self.market_service.distribute_payout(debate_id, winner)
        if self.ratings_enabled:
            outcome.ratings = self.rating_service.update_ratings(debate_id)

        if not outcome.success:
            failed = [
                name
                for name, step in (("payout", outcome.payout), ("ratings", outcome.ratings))
                if step is not None and not step.success
            ]
            logger.error(f"Resolution of debate {debate_id} incomplete: {', '.join(failed)} failed")
            return Result.fail(
                f"Resolution of debate {debate_id} incomplete: {', '.join(failed)} failed",
                code=error_codes.RESOLUTION_FAILED,
                value=outcome,
            )
        return Result.ok(outcome)

    def fail_debate(self, debate_id: str) -> Result[bool]:
        """Mark a non-terminal debate as failed. No payouts or rating changes follow."""
        if self.debate_repo.get_by_id(debate_id) is None:
            return Result.fail(f"Debate {debate_id} not found", code=error_codes.DEBATE_NOT_FOUND)
        moved = self.debate_repo.update_status(
            debate_id, (STATUS_PENDING, STATUS_IN_PROGRESS), STATUS_FAILED
        )
        if not moved:
            return Result.fail(f"Debate {debate_id} is already final", code=error_codes.STATE_ERROR)
        logger.warning(f"Debate {debate_id} marked as failed")
        return Result.ok(True)
