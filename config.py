"""
Centralized configuration for the debate arena rating and prediction market engine.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


DB_PATH = os.getenv("DB_PATH", "debate_arena.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# DebatePoints economy
STARTING_DEBATE_POINTS = _parse_int("STARTING_DEBATE_POINTS", 1000)
MIN_WAGER = _parse_int("MIN_WAGER", 10)
MAX_WAGER = _parse_int("MAX_WAGER", 500)

# Parimutuel odds
HOUSE_EDGE = _parse_float("HOUSE_EDGE", 0.05)  # 5% withheld before pricing
MIN_ODDS = _parse_float("MIN_ODDS", 1.1)  # Winners always get something back
# Prices quoted before anyone has wagered (tie is deliberately priced higher)
DEFAULT_ODDS_PRO = _parse_float("DEFAULT_ODDS_PRO", 2.0)
DEFAULT_ODDS_CON = _parse_float("DEFAULT_ODDS_CON", 2.0)
DEFAULT_ODDS_TIE = _parse_float("DEFAULT_ODDS_TIE", 3.0)
# Placeholder prices for an outcome nobody has backed yet
EMPTY_SIDE_ODDS_PRO_CON = _parse_float("EMPTY_SIDE_ODDS_PRO_CON", 10.0)
EMPTY_SIDE_ODDS_TIE = _parse_float("EMPTY_SIDE_ODDS_TIE", 15.0)

# Superforecaster badge (never revoked once earned)
SUPERFORECASTER_MIN_BETS = _parse_int("SUPERFORECASTER_MIN_BETS", 10)
SUPERFORECASTER_MIN_ACCURACY = _parse_float("SUPERFORECASTER_MIN_ACCURACY", 0.80)

# Crowd tally: votes needed before a crowd winner is declared
CROWD_WINNER_MIN_VOTES = _parse_int("CROWD_WINNER_MIN_VOTES", 10)

BETTING_HISTORY_DEFAULT_LIMIT = _parse_int("BETTING_HISTORY_DEFAULT_LIMIT", 20)

# Glicko-2 rating system configuration
INITIAL_RATING = _parse_float("INITIAL_RATING", 1500.0)
INITIAL_RD = _parse_float("INITIAL_RD", 350.0)
INITIAL_VOLATILITY = _parse_float("INITIAL_VOLATILITY", 0.06)
MAX_RD = _parse_float("MAX_RD", 350.0)
CALIBRATION_RD_THRESHOLD = _parse_float("CALIBRATION_RD_THRESHOLD", 100.0)  # Models with RD <= this are considered calibrated
RD_DECAY_CONSTANT = _parse_float("RD_DECAY_CONSTANT", 50.0)  # c value for idle RD growth, per week
RD_DECAY_GRACE_PERIOD_WEEKS = _parse_int("RD_DECAY_GRACE_PERIOD_WEEKS", 2)  # No decay for first N weeks after last debate
CONTROVERSY_THRESHOLD = _parse_float("CONTROVERSY_THRESHOLD", 150.0)  # |crowd - ai| above this flags a model

# Batch rating updates
RATING_BATCH_WINDOW_HOURS = _parse_int("RATING_BATCH_WINDOW_HOURS", 24)
RATINGS_ENABLED = _parse_bool("RATINGS_ENABLED", True)
