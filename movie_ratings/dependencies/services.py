"""
Service layer dependency injection for FastAPI.

The store handle lives on ``app.state.store`` (opened by the application
lifespan); repositories and services are built per request around it.
"""

from fastapi import Depends, Request

from movie_ratings.core.errors import StoreUnavailableError
from movie_ratings.db.mongodb import MongoStore
from movie_ratings.repositories.movie_repository import MovieRepository
from movie_ratings.repositories.rating_repository import RatingRepository
from movie_ratings.services.deduplication_service import DeduplicationService
from movie_ratings.services.rating_service import RatingService


def get_store(request: Request) -> MongoStore:
    """
    FastAPI dependency returning the application's store handle.

    Raises:
        StoreUnavailableError: if the application started without a store
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailableError("Database not connected")
    return store


def get_movie_repository(store: MongoStore = Depends(get_store)) -> MovieRepository:
    return MovieRepository(store.movies)


def get_rating_repository(store: MongoStore = Depends(get_store)) -> RatingRepository:
    return RatingRepository(store.ratings)


def get_rating_service(
    store: MongoStore = Depends(get_store),
    movies: MovieRepository = Depends(get_movie_repository),
    ratings: RatingRepository = Depends(get_rating_repository),
) -> RatingService:
    """
    FastAPI dependency to get RatingService instance.

    Usage:
        @router.post("/{movie_id}/rate")
        async def rate_movie(
            service: RatingService = Depends(get_rating_service)
        ):
            submission = await service.submit_rating(...)
    """
    return RatingService(store, movies, ratings, settings=store.settings)


def get_deduplication_service(
    store: MongoStore = Depends(get_store),
    movies: MovieRepository = Depends(get_movie_repository),
    ratings: RatingRepository = Depends(get_rating_repository),
) -> DeduplicationService:
    return DeduplicationService(store, movies, ratings, settings=store.settings)
