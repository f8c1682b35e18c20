"""
Debate domain model.
"""

from dataclasses import dataclass

# Outcomes a debate (or a vote on it) can take
PRO = "pro"
CON = "con"
TIE = "tie"
OUTCOMES = (PRO, CON, TIE)

# Debate lifecycle: pending -> in_progress -> completed | failed
STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)


def is_valid_outcome(value: str | None) -> bool:
    """Return True if value is one of pro/con/tie."""
    return value in OUTCOMES


@dataclass
class Debate:
    """
    A debate between two language models.

    The verdict fields are produced by the debate orchestrator; this engine
    only consumes them once the debate is completed.
    """

    debate_id: str
    pro_model_id: str
    con_model_id: str
    status: str = STATUS_PENDING
    topic: str | None = None
    winner: str | None = None
    crowd_winner: str | None = None
    ai_judge_winner: str | None = None
    crowd_votes_pro: int = 0
    crowd_votes_con: int = 0
    crowd_votes_tie: int = 0
    completed_at: str | None = None
    created_at: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    @property
    def total_crowd_votes(self) -> int:
        return self.crowd_votes_pro + self.crowd_votes_con + self.crowd_votes_tie

    def model_for_side(self, side: str) -> str:
        """Return the model id arguing the given side."""
        if side == PRO:
            return self.pro_model_id
        if side == CON:
            return self.con_model_id
        raise ValueError(f"Side must be 'pro' or 'con', got {side!r}")
