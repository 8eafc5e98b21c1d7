"""
Rating aggregate calculation.

The single place where an average is computed and rounded. Rating
submission, the merge engine and the repair pass all round here, so stored
aggregates never depend on which path wrote them.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from movie_ratings.models.movie import RatingAggregate

AVERAGE_PLACES = Decimal("0.01")


def compute_aggregate(values: Iterable[float]) -> RatingAggregate:
    """
    Compute (average, count) over rating values.

    The mean is taken over exact decimal values and rounded half away from
    zero to two places, so 4.125 becomes 4.13 and input order never changes
    the result.
    """
    decimals = [Decimal(str(value)) for value in values]
    return aggregate_from_totals(sum(decimals, Decimal(0)), len(decimals))


def aggregate_from_totals(total: Union[float, Decimal], count: int) -> RatingAggregate:
    """
    Aggregate from a precomputed (sum, count), as returned by a ``$group``
    stage. Sums of 0.5-step ratings are exact in binary floating point, so
    this rounds to the same value compute_aggregate gives for the same ratings.
    """
    if count == 0:
        return RatingAggregate(average=0.0, count=0)

    mean = Decimal(str(total)) / Decimal(count)
    average = mean.quantize(AVERAGE_PLACES, rounding=ROUND_HALF_UP)
    return RatingAggregate(average=float(average), count=count)
