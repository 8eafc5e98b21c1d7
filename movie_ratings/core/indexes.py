"""
Database index management for MongoDB.

Indexes are created once at application startup.
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from movie_ratings.core.config import config
from movie_ratings.core.logger import logger


async def create_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes the rating and merge paths rely on.

    Args:
        db: MongoDB database instance
    """
    movies = db[config.movies_collection]
    ratings = db[config.ratings_collection]

    try:
        # 1. Identity key (duplicates differ by movieId, so this stays unique)
        await movies.create_index(
            [("movieId", ASCENDING)],
            unique=True,
            name="idx_movie_id_unique"
        )
        logger.info("Created unique index on 'movieId'")

        # 2. Natural key lookup
        await movies.create_index(
            [("title", ASCENDING), ("year", ASCENDING)],
            name="idx_title_year"
        )
        logger.info("Created compound index on 'title', 'year'")

        # 3. Ratings by movie (recompute and reassignment)
        await ratings.create_index(
            [("movieId", ASCENDING)],
            name="idx_rating_movie_id"
        )
        logger.info("Created index on ratings 'movieId'")

        # 4. Recent ratings per movie
        await ratings.create_index(
            [("movieId", ASCENDING), ("timestamp", DESCENDING)],
            name="idx_rating_movie_timestamp"
        )
        logger.info("Created compound index on ratings 'movieId', 'timestamp'")

    except Exception as e:
        logger.error(
            "Failed to create indexes",
            error=e,
            metadata={"event": "index_creation_failed"}
        )
        raise
