"""
Service layer: rating submission, aggregate repair and duplicate merging.
"""

from movie_ratings.services.aggregate import compute_aggregate
from movie_ratings.services.deduplication_service import DeduplicationService
from movie_ratings.services.rating_service import RatingService

__all__ = ["compute_aggregate", "DeduplicationService", "RatingService"]
