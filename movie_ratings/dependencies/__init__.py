"""
FastAPI dependency providers.
"""

from movie_ratings.dependencies.services import (
    get_deduplication_service,
    get_movie_repository,
    get_rating_repository,
    get_rating_service,
    get_store,
)

__all__ = [
    "get_deduplication_service",
    "get_movie_repository",
    "get_rating_repository",
    "get_rating_service",
    "get_store",
]
