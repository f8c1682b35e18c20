"""
Parimutuel odds domain service.

Turns a bet pool into payout multipliers. The crowd's own wagers set the
price, so no external feed is needed; the house edge is withheld first.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

from domain.models.debate import CON, PRO, TIE
from domain.models.market import BetPool, Odds


def _round_odds(value: float) -> float:
    """Round half-up to cents on the shortest decimal form (142.5 / 100 -> 1.43)."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class OddsCalculator:
    """
    Pure domain service for parimutuel pricing.

    Responsibilities:
    - Quote default odds before any wager exists
    - Price each outcome as effective_pool / side_pool, floored at min_odds
    - Quote placeholder odds for outcomes nobody has backed
    """

    def __init__(
        self,
        house_edge: float = 0.05,
        min_odds: float = 1.1,
        default_odds: Odds | None = None,
        empty_side_odds: Odds | None = None,
    ):
        """
        Initialize odds calculator.

        Args:
            house_edge: Fraction of the pool withheld before pricing
            min_odds: Hard floor so a winning bettor always gets a return
            default_odds: Odds quoted when the pool is empty
            empty_side_odds: Odds quoted for an outcome with no wagers
        """
        if not 0.0 <= house_edge < 1.0:
            raise ValueError(f"house_edge must be in [0, 1), got {house_edge}")
        self.house_edge = house_edge
        self.min_odds = min_odds
        self.default_odds = default_odds or Odds(pro=2.0, con=2.0, tie=3.0)
        self.empty_side_odds = empty_side_odds or Odds(pro=10.0, con=10.0, tie=15.0)

    def effective_pool(self, pool: BetPool) -> float:
        """Pool remaining after the house edge is withheld."""
        return pool.total_pool * (1 - self.house_edge)

    def _side_odds(self, effective_pool: float, side_total: int, placeholder: float) -> float:
        if side_total <= 0:
            return placeholder
        return max(self.min_odds, effective_pool / side_total)

    def calculate(self, pool: BetPool) -> Odds:
        """
        Calculate payout multipliers for every outcome.

        Args:
            pool: Current bet pool for the debate

        Returns:
            Odds rounded to 2 decimal places
        """
        if pool.total_pool == 0:
            return self.default_odds

        effective = self.effective_pool(pool)
        pro = self._side_odds(effective, pool.pro_total, self.empty_side_odds.pro)
        con = self._side_odds(effective, pool.con_total, self.empty_side_odds.con)
        tie = self._side_odds(effective, pool.tie_total, self.empty_side_odds.tie)

        return Odds(pro=_round_odds(pro), con=_round_odds(con), tie=_round_odds(tie))

    def odds_for(self, pool: BetPool, outcome: str) -> float:
        """Odds for a single outcome."""
        if outcome not in (PRO, CON, TIE):
            raise ValueError(f"Invalid outcome: {outcome}")
        return self.calculate(pool).for_outcome(outcome)

    @staticmethod
    def payout_for(wager_amount: int, odds_at_bet: float) -> int:
        """Points returned to a winning wager (stake included), rounded down."""
        return math.floor(Decimal(repr(odds_at_bet)) * wager_amount)
