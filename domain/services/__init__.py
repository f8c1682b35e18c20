"""
Domain services containing pure business logic.
"""

from domain.services.crowd_tally_service import determine_crowd_winner
from domain.services.odds_service import OddsCalculator

__all__ = ["OddsCalculator", "determine_crowd_winner"]
