"""
Movie repository - data access for the movies collection.
"""

from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorCollection
from pymongo import ASCENDING, UpdateOne
from pymongo.errors import BulkWriteError

from movie_ratings.core.errors import translate_store_errors
from movie_ratings.core.logger import logger
from movie_ratings.models.movie import Movie, RatingAggregate
from movie_ratings.repositories.base_repository import BaseRepository
from movie_ratings.utils.natural_key import candidate_title_pattern, natural_key

_TITLE_YEAR_PROJECTION = {"_id": 0, "movieId": 1, "title": 1, "year": 1}


def _aggregate_fields(aggregate: RatingAggregate) -> Dict[str, Any]:
    # ratingsUpdatedAt changes on every write: two transactions touching
    # the same movie must always conflict
    return {**aggregate.model_dump(by_alias=True), "ratingsUpdatedAt": datetime.now(timezone.utc)}


def _written_before_filter(movie_id: int, written_before: Optional[datetime]) -> Dict[str, Any]:
    query: Dict[str, Any] = {"movieId": movie_id}
    if written_before is not None:
        query["$or"] = [
            {"ratingsUpdatedAt": {"$lt": written_before}},
            {"ratingsUpdatedAt": {"$exists": False}},
        ]
    return query


class MovieRepository(BaseRepository):
    """Repository for movie records and their stored rating aggregate."""

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def find_by_movie_id(
        self,
        movie_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[Movie]:
        document = await self.find_one({"movieId": movie_id}, session=session)
        return Movie.model_validate(document) if document else None

    async def find_by_natural_key(
        self,
        key: str,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> List[Movie]:
        """
        All movies whose natural key equals ``key``, lowest movieId first.
        """
        documents = await self.find_many(
            {"title": {"$regex": candidate_title_pattern(key)}},
            sort=[("movieId", ASCENDING)],
            session=session,
        )
        return [
            Movie.model_validate(doc) for doc in documents
            if natural_key(doc) == key
        ]

    async def iter_title_year(self) -> AsyncIterator[Dict[str, Any]]:
        """Stream (movieId, title, year) for every movie."""
        with translate_store_errors(f"scan {self.collection_name}"):
            cursor = self.collection.find({}, _TITLE_YEAR_PROJECTION).sort("movieId", ASCENDING)
            async for document in cursor:
                yield document

    async def iter_movie_ids(self) -> AsyncIterator[int]:
        with translate_store_errors(f"scan {self.collection_name}"):
            cursor = self.collection.find({}, {"_id": 0, "movieId": 1}).sort("movieId", ASCENDING)
            async for document in cursor:
                yield document["movieId"]

    async def update_aggregate(
        self,
        movie_id: int,
        aggregate: RatingAggregate,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> bool:
        """
        Write averageRating / ratingCount onto a movie.

        Returns:
            bool: True if the movie exists
        """
        matched = await self.update_one(
            {"movieId": movie_id},
            {"$set": _aggregate_fields(aggregate)},
            session=session,
        )
        return matched > 0

    async def delete_by_movie_ids(
        self,
        movie_ids: Sequence[int],
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        if not movie_ids:
            return 0
        return await self.delete_many({"movieId": {"$in": list(movie_ids)}}, session=session)

    async def bulk_update_aggregates(
        self,
        aggregates: Sequence[Tuple[int, RatingAggregate]],
        written_before: Optional[datetime] = None,
    ) -> Tuple[int, List[int]]:
        """
        Write many aggregates with one unordered bulk write.

        With ``written_before`` a movie is only updated when its aggregate was
        last written before that instant (or never), so a fresher aggregate
        written by a concurrent submission is left alone and counts as
        unmatched. Per-operation failures do not stop the batch; they are
        reported back.

        Returns:
            (matched count, movieIds whose write failed)
        """
        if not aggregates:
            return 0, []

        operations = [
            UpdateOne(_written_before_filter(movie_id, written_before), {"$set": _aggregate_fields(aggregate)})
            for movie_id, aggregate in aggregates
        ]

        try:
            with translate_store_errors(f"bulk update {self.collection_name}"):
                result = await self.collection.bulk_write(operations, ordered=False)
            return result.matched_count, []
        except BulkWriteError as e:
            write_errors = e.details.get("writeErrors", [])
            failed = [aggregates[err["index"]][0] for err in write_errors]
            logger.warning(
                f"Bulk aggregate update had {len(failed)} failed operations",
                metadata={
                    "event": "bulk_aggregate_partial_failure",
                    "collection": self.collection_name,
                    "failedMovieIds": failed,
                }
            )
            return e.details.get("nMatched", 0), failed
