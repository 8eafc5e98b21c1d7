"""Shared test fixtures"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from fakes import FakeMovieRepository, FakeRatingRepository, FakeStore, InMemoryDatabase
from movie_ratings.core.config import Config
from movie_ratings.services.deduplication_service import DeduplicationService
from movie_ratings.services.rating_service import RatingService


@pytest.fixture
def settings():
    """Settings with fast retries"""
    return Config(
        rating_transactions=True,
        merge_max_attempts=3,
        store_retry_attempts=3,
        store_retry_base_delay=0,
        store_retry_max_delay=0,
        repair_batch_size=2,
    )


@pytest.fixture
def db():
    """Empty in-memory movie/rating store"""
    return InMemoryDatabase()


@pytest.fixture
def store(db, settings):
    return FakeStore(db, settings)


@pytest.fixture
def movie_repository(db):
    return FakeMovieRepository(db)


@pytest.fixture
def rating_repository(db):
    return FakeRatingRepository(db)


@pytest.fixture
def rating_service(store, movie_repository, rating_repository, settings):
    return RatingService(store, movie_repository, rating_repository, settings=settings)


@pytest.fixture
def dedup_service(store, movie_repository, rating_repository, settings):
    return DeduplicationService(store, movie_repository, rating_repository, settings=settings)


@pytest.fixture
def movie_e1(db):
    """Movie 1 with ratings [4.0, 5.0, 3.0] and a stored aggregate to match"""
    db.add_movie(1, "Toy Story (1995)", 1995, ["Animation", "Comedy"])
    for user_id, value in enumerate([4.0, 5.0, 3.0], start=1):
        db.add_rating(1, value, user_id=user_id)
    db.movies[1].update({"averageRating": 4.0, "ratingCount": 3})
    return db.movies[1]


@pytest.fixture
def alpha_group(db):
    """Two records for "Alpha (1999)": id 10 with [5.0], id 11 with [3.0, 3.0]"""
    db.add_movie(10, "Alpha (1999)", 1999)
    db.add_movie(11, "Alpha (1999)", 1999)
    db.add_rating(10, 5.0, user_id=1)
    db.add_rating(11, 3.0, user_id=2)
    db.add_rating(11, 3.0, user_id=3)
    db.movies[10].update({"averageRating": 5.0, "ratingCount": 1})
    db.movies[11].update({"averageRating": 3.0, "ratingCount": 2})
    return db


@pytest.fixture
def mock_collection():
    """Mock MongoDB collection for testing"""
    collection = AsyncMock()
    collection.name = "mock"
    collection.find = MagicMock()
    collection.aggregate = MagicMock()
    return collection
