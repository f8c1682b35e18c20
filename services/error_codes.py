"""
Standard error codes for the service layer.

Callers branch on these instead of parsing error message text.

Usage:
    from services.error_codes import DEBATE_NOT_FOUND
    from services.result import Result

    if debate is None:
        return Result.fail("Debate not found", code=DEBATE_NOT_FOUND)
"""

# General errors
VALIDATION_ERROR = "validation_error"
STATE_ERROR = "state_error"

# Market errors
INSUFFICIENT_FUNDS = "insufficient_funds"
ALREADY_VOTED = "already_voted"
INVALID_OUTCOME = "invalid_outcome"

# Debate errors
DEBATE_NOT_FOUND = "debate_not_found"
DEBATE_NOT_COMPLETED = "debate_not_completed"
RESOLUTION_FAILED = "resolution_failed"

# Rating errors
MODEL_NOT_FOUND = "model_not_found"
RATING_UPDATE_FAILED = "rating_update_failed"
