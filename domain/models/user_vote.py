"""
UserVote domain model.
"""

from dataclasses import dataclass


@dataclass
class UserVote:
    """
    One vote (and optional wager) by a session on a debate.

    wager_amount == 0 means a vote without a bet. was_correct stays None
    until the debate is resolved and payouts are distributed.
    """

    vote_id: int
    debate_id: str
    session_id: str
    vote: str
    user_id: str | None = None
    wager_amount: int = 0
    odds_at_bet: float | None = None
    payout_amount: int = 0
    was_correct: bool | None = None
    created_at: str | None = None

    @property
    def is_bet(self) -> bool:
        return self.wager_amount > 0

    @property
    def is_resolved(self) -> bool:
        return self.was_correct is not None

    @property
    def profit(self) -> int:
        """Net points won or lost on this wager (only meaningful once resolved)."""
        return self.payout_amount - self.wager_amount
