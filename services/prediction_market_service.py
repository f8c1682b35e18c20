"""
Parimutuel prediction market: pool and odds queries, wagers, vote casting and payouts.
"""

import logging

from config import (
    CROWD_WINNER_MIN_VOTES,
    DEFAULT_ODDS_CON,
    DEFAULT_ODDS_PRO,
    DEFAULT_ODDS_TIE,
    EMPTY_SIDE_ODDS_PRO_CON,
    EMPTY_SIDE_ODDS_TIE,
    HOUSE_EDGE,
    MAX_WAGER,
    MIN_ODDS,
    MIN_WAGER,
    SUPERFORECASTER_MIN_ACCURACY,
    SUPERFORECASTER_MIN_BETS,
)
from domain.models.debate import is_valid_outcome
from domain.models.market import BetPool, BetResult, Odds
from domain.services.crowd_tally_service import determine_crowd_winner
from domain.services.odds_service import OddsCalculator
from repositories.interfaces import IDebateRepository, IProfileRepository, IVoteRepository
from services import error_codes
from services.interfaces import IPredictionMarketService
from services.result import Result
from services.user_stats_service import UserStatsService

logger = logging.getLogger("arena.services.market")


def default_odds_calculator() -> OddsCalculator:
    """OddsCalculator built from configuration."""
    return OddsCalculator(
        house_edge=HOUSE_EDGE,
        min_odds=MIN_ODDS,
        default_odds=Odds(pro=DEFAULT_ODDS_PRO, con=DEFAULT_ODDS_CON, tie=DEFAULT_ODDS_TIE),
        empty_side_odds=Odds(
            pro=EMPTY_SIDE_ODDS_PRO_CON, con=EMPTY_SIDE_ODDS_PRO_CON, tie=EMPTY_SIDE_ODDS_TIE
        ),
    )


class PredictionMarketService(IPredictionMarketService):
    """
    Encapsulates DebatePoints wagering on debate outcomes.

    Responsibilities:
    - Quote the bet pool and current odds for a debate
    - Validate and record wagers (atomic debit with an odds snapshot)
    - Record plain votes and keep the debate's crowd tally current
    - Settle wagers once a debate is resolved
    """

    def __init__(
        self,
        vote_repo: IVoteRepository,
        profile_repo: IProfileRepository,
        debate_repo: IDebateRepository,
        user_stats_service: UserStatsService,
        odds_calculator: OddsCalculator | None = None,
        min_wager: int | None = None,
        max_wager: int | None = None,
        superforecaster_min_bets: int | None = None,
        superforecaster_min_accuracy: float | None = None,
        crowd_winner_min_votes: int | None = None,
    ):
        self.vote_repo = vote_repo
        self.profile_repo = profile_repo
        self.debate_repo = debate_repo
        self.user_stats_service = user_stats_service
        self.odds_calculator = odds_calculator or default_odds_calculator()
        self.min_wager = min_wager if min_wager is not None else MIN_WAGER
        self.max_wager = max_wager if max_wager is not None else MAX_WAGER
        self.superforecaster_min_bets = (
            superforecaster_min_bets if superforecaster_min_bets is not None else SUPERFORECASTER_MIN_BETS
        )
        self.superforecaster_min_accuracy = (
            superforecaster_min_accuracy
            if superforecaster_min_accuracy is not None
            else SUPERFORECASTER_MIN_ACCURACY
        )
        self.crowd_winner_min_votes = (
            crowd_winner_min_votes if crowd_winner_min_votes is not None else CROWD_WINNER_MIN_VOTES
        )

    def get_bet_pool(self, debate_id: str) -> BetPool:
        """Current wagers per outcome, summed from stored votes."""
        return self.vote_repo.get_bet_pool(debate_id)

    def get_current_odds(self, debate_id: str) -> Odds:
        """Odds a new wager would be priced at right now."""
        return self.odds_calculator.calculate(self.get_bet_pool(debate_id))

    def _open_debate_error(self, debate_id: str) -> tuple[str, str] | None:
        debate = self.debate_repo.get_by_id(debate_id)
        if debate is None:
            return f"Debate {debate_id} not found", error_codes.DEBATE_NOT_FOUND
        if debate.is_terminal:
            return f"Debate {debate_id} is {debate.status}; voting is closed", error_codes.STATE_ERROR
        return None

    def place_bet(
        self,
        debate_id: str,
        session_id: str,
        vote: str,
        wager_amount: int,
        user_id: str | None = None,
    ) -> BetResult:
        """
        Place a DebatePoints wager on a debate outcome.

        Checks run in order and the first failure wins; a failed bet never
        changes any balance. The odds snapshot taken here, not whatever is
        displayed later, prices the eventual payout.

        Args:
            debate_id: Debate to wager on
            session_id: Bettor's session
            vote: 'pro', 'con' or 'tie'
            wager_amount: Points to wager, within [min_wager, max_wager]
            user_id: Authenticated user id, if any

        Returns:
            BetResult with the new balance, the odds snapshot and a message
        """
        if not is_valid_outcome(vote):
            return BetResult(
                success=False,
                new_balance=0,
                message=f"Invalid vote '{vote}'. Must be pro, con or tie.",
                error_code=error_codes.INVALID_OUTCOME,
            )

        if not isinstance(wager_amount, int) or not (self.min_wager <= wager_amount <= self.max_wager):
            return BetResult(
                success=False,
                new_balance=0,
                message=f"Wager must be between {self.min_wager} and {self.max_wager} DebatePoints",
                error_code=error_codes.VALIDATION_ERROR,
            )

        debate_error = self._open_debate_error(debate_id)
        if debate_error:
            message, code = debate_error
            return BetResult(success=False, new_balance=0, message=message, error_code=code)

        profile = self.user_stats_service.get_or_create_profile(session_id, user_id)

        if profile.debate_points < wager_amount:
            shortfall = wager_amount - profile.debate_points
            return BetResult(
                success=False,
                new_balance=profile.debate_points,
                message=(
                    f"Insufficient DebatePoints. You have {profile.debate_points}, "
                    f"need {shortfall} more."
                ),
                error_code=error_codes.INSUFFICIENT_FUNDS,
            )

        if self.vote_repo.get_vote(debate_id, session_id) is not None:
            return BetResult(
                success=False,
                new_balance=profile.debate_points,
                message="You have already voted on this debate",
                error_code=error_codes.ALREADY_VOTED,
            )

        odds = self.get_current_odds(debate_id)
        odds_at_bet = odds.for_outcome(vote)

        try:
            placed = self.vote_repo.place_bet_atomic(
                debate_id=debate_id,
                session_id=session_id,
                user_id=profile.user_id,
                vote=vote,
                wager_amount=wager_amount,
                odds_at_bet=odds_at_bet,
            )
        except ValueError as e:
            # Lost a race with another request from the same profile or session
            current = self.profile_repo.get_by_user_id(profile.user_id)
            balance = current.debate_points if current else profile.debate_points
            if self.vote_repo.get_vote(debate_id, session_id) is not None:
                code = error_codes.ALREADY_VOTED
            else:
                code = error_codes.INSUFFICIENT_FUNDS
            logger.info(f"Bet rejected for session {session_id} on debate {debate_id}: {e}")
            return BetResult(success=False, new_balance=balance, message=str(e), error_code=code)

        logger.info(
            f"Bet placed: session={session_id} debate={debate_id} vote={vote} "
            f"amount={wager_amount} odds={odds_at_bet}"
        )
        return BetResult(
            success=True,
            new_balance=placed["new_balance"],
            odds=odds,
            message=f"Bet placed: {wager_amount} DebatePoints on {vote} at {odds_at_bet}x odds",
            payout=0,
            vote_id=placed["vote_id"],
            odds_at_bet=odds_at_bet,
        )

    def cast_vote(
        self,
        debate_id: str,
        session_id: str,
        vote: str,
        wager_amount: int = 0,
        user_id: str | None = None,
    ) -> Result[dict]:
        """
        Cast a crowd vote, optionally backed by a wager.

        A wager of 0 records the vote without touching the balance; anything
        else goes through place_bet. Either way the profile's vote count and
        the debate's crowd tally are incremented.

        Returns:
            Result with vote_id, the updated tally, the crowd winner so far
            and, for wagers, the BetResult
        """
        if not is_valid_outcome(vote):
            return Result.fail(
                f"Invalid vote '{vote}'. Must be pro, con or tie.", code=error_codes.INVALID_OUTCOME
            )
        if wager_amount < 0:
            return Result.fail("Wager cannot be negative", code=error_codes.VALIDATION_ERROR)

        bet = None
        if wager_amount > 0:
            bet = self.place_bet(debate_id, session_id, vote, wager_amount, user_id=user_id)
            if not bet.success:
                return Result.fail(bet.message, code=bet.error_code)
            vote_id = bet.vote_id
            profile = self.user_stats_service.get_or_create_profile(session_id, user_id)
        else:
            debate_error = self._open_debate_error(debate_id)
            if debate_error:
                message, code = debate_error
                return Result.fail(message, code=code)
            profile = self.user_stats_service.get_or_create_profile(session_id, user_id)
            try:
                vote_id = self.vote_repo.record_vote(debate_id, session_id, profile.user_id, vote)
            except ValueError as e:
                return Result.fail(str(e), code=error_codes.ALREADY_VOTED)

        self.profile_repo.increment_total_votes(profile.user_id)

        debate = self.debate_repo.increment_crowd_vote(debate_id, vote)
        crowd_winner = None
        if debate is not None:
            crowd_winner = determine_crowd_winner(
                debate.crowd_votes_pro,
                debate.crowd_votes_con,
                debate.crowd_votes_tie,
                min_votes=self.crowd_winner_min_votes,
            )
            if crowd_winner != debate.crowd_winner:
                self.debate_repo.set_crowd_winner(debate_id, crowd_winner)

        return Result.ok(
            {
                "vote_id": vote_id,
                "vote": vote,
                "crowd_votes": {
                    "pro": debate.crowd_votes_pro if debate else 0,
                    "con": debate.crowd_votes_con if debate else 0,
                    "tie": debate.crowd_votes_tie if debate else 0,
                },
                "crowd_winner": crowd_winner,
                "bet": bet,
            }
        )

    def distribute_payout(self, debate_id: str, winner: str) -> Result[dict]:
        """
        Settle every wager on a resolved debate.

        Each vote is settled in its own transaction. Votes already settled
        are skipped, so calling this again after a partial failure only
        finishes the remaining votes.

        Args:
            debate_id: Resolved debate
            winner: Final outcome ('pro', 'con' or 'tie')

        Returns:
            Result with a settlement summary; failed if any vote could not
            be settled (the summary lists failed_vote_ids)
        """
        if not is_valid_outcome(winner):
            return Result.fail(
                f"Invalid winner '{winner}'. Must be pro, con or tie.", code=error_codes.INVALID_OUTCOME
            )

        votes = self.vote_repo.get_votes_for_debate(debate_id, wagered_only=True)
        summary = {
            "debate_id": debate_id,
            "winner": winner,
            "settled": 0,
            "skipped": 0,
            "winners": 0,
            "total_paid": 0,
            "new_superforecasters": [],
            "failed_vote_ids": [],
        }

        for vote in votes:
            if vote.is_resolved:
                summary["skipped"] += 1
                continue

            was_correct = vote.vote == winner
            try:
                payout = (
                    self.odds_calculator.payout_for(vote.wager_amount, vote.odds_at_bet)
                    if was_correct
                    else 0
                )
                outcome = self.vote_repo.resolve_vote_atomic(
                    vote.vote_id,
                    was_correct,
                    payout,
                    self.superforecaster_min_bets,
                    self.superforecaster_min_accuracy,
                )
            except Exception:
                logger.exception(f"Payout failed for vote {vote.vote_id} on debate {debate_id}")
                summary["failed_vote_ids"].append(vote.vote_id)
                continue

            if not outcome["resolved"]:
                summary["skipped"] += 1
                continue

            summary["settled"] += 1
            if payout > 0:
                summary["winners"] += 1
                summary["total_paid"] += payout
            if outcome["superforecaster_awarded"]:
                logger.info(f"Superforecaster badge awarded to {outcome['user_id']}")
                summary["new_superforecasters"].append(outcome["user_id"])

        logger.info(
            f"Payouts for debate {debate_id} ({winner}): settled={summary['settled']} "
            f"skipped={summary['skipped']} paid={summary['total_paid']} "
            f"failed={len(summary['failed_vote_ids'])}"
        )

        if summary["failed_vote_ids"]:
            return Result.fail(
                f"{len(summary['failed_vote_ids'])} payout(s) failed for debate {debate_id}",
                code=error_codes.RESOLUTION_FAILED,
                value=summary,
            )
        return Result.ok(summary)
