from .merge import (
    DuplicateGroupSummary,
    MergePassReport,
    MergeResult,
    MergeStatus,
    RepairReport,
)
from .movie import Movie, RatingAggregate
from .rating import Rating, RatingRequest, RatingSubmission

__all__ = [
    "DuplicateGroupSummary",
    "MergePassReport",
    "MergeResult",
    "MergeStatus",
    "RepairReport",
    "Movie",
    "RatingAggregate",
    "Rating",
    "RatingRequest",
    "RatingSubmission",
]
