"""
Rating repository - data access for the ratings collection.
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorCollection
from pymongo import UpdateOne

from movie_ratings.core.errors import translate_store_errors
from movie_ratings.models.rating import Rating
from movie_ratings.repositories.base_repository import BaseRepository


class RatingRepository(BaseRepository):
    """Repository for rating events."""

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def insert_rating(
        self,
        rating: Rating,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Rating:
        inserted_id = await self.insert_one(rating.to_document(), session=session)
        return rating.model_copy(update={"id": inserted_id})

    async def find_values_for_movie(
        self,
        movie_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> List[float]:
        """Every rating value currently bound to movie_id."""
        documents = await self.find_many(
            {"movieId": movie_id},
            projection={"_id": 0, "rating": 1},
            session=session,
        )
        return [doc["rating"] for doc in documents]

    async def find_ids_for_movies(
        self,
        movie_ids: Sequence[int],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> List[Any]:
        if not movie_ids:
            return []
        documents = await self.find_many(
            {"movieId": {"$in": list(movie_ids)}},
            projection={"_id": 1},
            session=session,
        )
        return [doc["_id"] for doc in documents]

    async def reassign(
        self,
        rating_ids: Sequence[Any],
        from_movie_ids: Sequence[int],
        to_movie_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        """
        Rebind ratings to ``to_movie_id`` with one batched write.

        Each operation only matches a rating still bound to one of
        ``from_movie_ids``, so re-running after a partial success moves
        nothing twice.

        Returns:
            int: number of ratings moved
        """
        if not rating_ids:
            return 0

        source_ids = list(from_movie_ids)
        operations = [
            UpdateOne(
                {"_id": rating_id, "movieId": {"$in": source_ids}},
                {"$set": {"movieId": to_movie_id}},
            )
            for rating_id in rating_ids
        ]
        with translate_store_errors(f"bulk reassign {self.collection_name}"):
            result = await self.collection.bulk_write(operations, ordered=True, session=session)
        return result.modified_count

    async def iter_totals_by_movie(self) -> AsyncIterator[Tuple[int, float, int]]:
        """
        Stream (movieId, sum of ratings, number of ratings) for every movie
        that has ratings. Grouping happens server side, so memory stays
        proportional to the result, not to the ratings collection.
        """
        pipeline: List[Dict[str, Any]] = [
            {"$group": {"_id": "$movieId", "total": {"$sum": "$rating"}, "count": {"$sum": 1}}},
            {"$sort": {"_id": 1}},
        ]
        with translate_store_errors(f"aggregate {self.collection_name}"):
            cursor = self.collection.aggregate(pipeline, allowDiskUse=True)
            async for document in cursor:
                yield document["_id"], document["total"], document["count"]
