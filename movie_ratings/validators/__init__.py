from .rating_validators import (
    MAX_RATING,
    MIN_RATING,
    RATING_STEP,
    validate_positive_id,
    validate_rating_value,
)

__all__ = [
    "MAX_RATING",
    "MIN_RATING",
    "RATING_STEP",
    "validate_positive_id",
    "validate_rating_value",
]
