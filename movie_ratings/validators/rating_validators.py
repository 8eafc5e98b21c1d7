"""
Input validation for rating submissions.

Raises InvalidInputError so the serving layer and the CLI tools report the
same message for the same bad input.
"""

from decimal import Decimal, InvalidOperation
from numbers import Real

from movie_ratings.core.errors import InvalidInputError

MIN_RATING = Decimal("0.5")
MAX_RATING = Decimal("5.0")
RATING_STEP = Decimal("0.5")


def validate_positive_id(value, field: str) -> int:
    """Return ``value`` as an int, or raise if it is not a positive integer."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputError(f"Valid {field} is required", details={"field": field})
    if isinstance(value, float) and not value.is_integer():
        raise InvalidInputError(f"{field} must be a whole number", details={"field": field})
    if value <= 0:
        raise InvalidInputError(f"{field} must be positive", details={"field": field})
    return int(value)


def validate_rating_value(value) -> float:
    """
    Check a rating lies in [0.5, 5.0] on a 0.5 grid.

    Returns:
        float: the rating value
    """
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise InvalidInputError("Valid rating is required", details={"field": "rating"})

    try:
        rating = Decimal(str(value))
    except InvalidOperation:
        raise InvalidInputError("Valid rating is required", details={"field": "rating"})
    if not rating.is_finite():
        raise InvalidInputError("Valid rating is required", details={"field": "rating"})

    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidInputError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}",
            details={"field": "rating", "value": float(rating)},
        )
    if rating % RATING_STEP != 0:
        raise InvalidInputError(
            f"Rating must be in increments of {RATING_STEP}",
            details={"field": "rating", "value": float(rating)},
        )
    return float(rating)
