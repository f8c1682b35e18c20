"""
Prediction market value objects.
"""

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class BetPool:
    """Wagers on one debate, summed per outcome. Derived, never persisted."""

    pro_total: int = 0
    con_total: int = 0
    tie_total: int = 0

    @property
    def total_pool(self) -> int:
        return self.pro_total + self.con_total + self.tie_total

    def side_total(self, outcome: str) -> int:
        return {"pro": self.pro_total, "con": self.con_total, "tie": self.tie_total}[outcome]

    def to_dict(self) -> dict[str, int]:
        return {
            "proTotal": self.pro_total,
            "conTotal": self.con_total,
            "tieTotal": self.tie_total,
            "totalPool": self.total_pool,
        }


@dataclass(frozen=True)
class Odds:
    """Payout multipliers for each outcome."""

    pro: float
    con: float
    tie: float

    def for_outcome(self, outcome: str) -> float:
        return {"pro": self.pro, "con": self.con, "tie": self.tie}[outcome]

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


ZERO_ODDS = Odds(pro=0.0, con=0.0, tie=0.0)


@dataclass
class BetResult:
    """Outcome of a wager attempt, always carrying a displayable message."""

    success: bool
    new_balance: int
    odds: Odds = field(default_factory=lambda: ZERO_ODDS)
    message: str = ""
    payout: int = 0
    vote_id: int | None = None
    odds_at_bet: float | None = None
    error_code: str | None = None
