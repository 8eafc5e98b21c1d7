"""
Repository layer for data access.

Repository classes wrap the MongoDB collections so services never build
queries themselves.
"""

from movie_ratings.repositories.base_repository import BaseRepository
from movie_ratings.repositories.movie_repository import MovieRepository
from movie_ratings.repositories.rating_repository import RatingRepository

__all__ = ["BaseRepository", "MovieRepository", "RatingRepository"]
