"""
Diagnostics derived from a model's crowd and AI-quality ratings.

Pure functions, no state: they only compare the two tracks.
"""

RATING_CENTER = 1500.0
NORMALIZED_CENTER = 50.0
NORMALIZE_DIVISOR = 10.0


def controversy_index(crowd_rating: float, ai_quality_rating: float) -> float:
    """Absolute gap between the audience's and the judge's rating. Symmetric."""
    return abs(crowd_rating - ai_quality_rating)


def is_controversial(crowd_rating: float, ai_quality_rating: float, threshold: float = 150.0) -> bool:
    """True when audience and judge disagree by more than threshold points."""
    return controversy_index(crowd_rating, ai_quality_rating) > threshold


def normalize_rating(rating: float) -> float:
    """Map the 1500-centered rating scale onto a 0-100 style scale centered at 50."""
    return ((rating - RATING_CENTER) / NORMALIZE_DIVISOR) + NORMALIZED_CENTER


def charismatic_liar_index(crowd_rating: float, ai_quality_rating: float) -> float:
    """
    How much more persuasive a model is to humans than it is sound to the judge.

    Zero whenever the AI-quality rating matches or exceeds the crowd rating.
    Grows with the crowd rating for a fixed AI-quality rating below it.
    """
    return max(0.0, normalize_rating(crowd_rating) - normalize_rating(ai_quality_rating))
