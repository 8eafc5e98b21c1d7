"""
In-memory stand-ins for the store and repositories.

They expose the same async surface as MovieRepository / RatingRepository and
MongoStore.transaction(), with snapshot-and-restore transactions, so service
behaviour (including rollback) can be checked without a MongoDB server.
Failures are injected per method name through ``fail_on``.
"""

import copy
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

from bson import ObjectId

from movie_ratings.core.config import Config
from movie_ratings.models.movie import Movie, RatingAggregate
from movie_ratings.models.rating import Rating
from movie_ratings.utils.natural_key import natural_key


def _aggregate_fields(aggregate: RatingAggregate) -> dict:
    return {**aggregate.model_dump(by_alias=True), "ratingsUpdatedAt": datetime.now(timezone.utc)}


class InMemoryDatabase:
    def __init__(self):
        self.movies: Dict[int, dict] = {}
        self.ratings: Dict[ObjectId, dict] = {}
        self.fail_on: Dict[str, List[BaseException]] = {}

    def add_movie(self, movie_id: int, title: str, year: Optional[int] = None, genres=None) -> dict:
        document = {
            "movieId": movie_id,
            "title": title,
            "year": year,
            "genres": genres or [],
            "averageRating": 0.0,
            "ratingCount": 0,
        }
        self.movies[movie_id] = document
        return document

    def add_rating(self, movie_id: int, value: float, user_id: int = 1, timestamp: int = 1_000_000) -> ObjectId:
        rating_id = ObjectId()
        self.ratings[rating_id] = {
            "_id": rating_id,
            "movieId": movie_id,
            "userId": user_id,
            "rating": value,
            "timestamp": timestamp,
        }
        return rating_id

    def ratings_for(self, movie_id: int) -> List[dict]:
        return [r for r in self.ratings.values() if r["movieId"] == movie_id]

    def state(self):
        """Deep copy of everything stored, for before/after comparisons."""
        return copy.deepcopy((self.movies, self.ratings))

    def restore(self, state) -> None:
        self.movies, self.ratings = copy.deepcopy(state)

    def fail(self, method: str, *errors: BaseException) -> None:
        """Make the next calls of ``method`` raise ``errors`` in order."""
        self.fail_on.setdefault(method, []).extend(errors)

    def maybe_fail(self, method: str) -> None:
        pending = self.fail_on.get(method)
        if pending:
            raise pending.pop(0)


class FakeSession:
    pass


class FakeStore:
    def __init__(self, db: InMemoryDatabase, settings: Optional[Config] = None):
        self.db = db
        self.settings = settings or Config()
        self.commits = 0
        self.aborts = 0

    @asynccontextmanager
    async def transaction(self):
        snapshot = self.db.state()
        try:
            yield FakeSession()
        except BaseException:
            self.db.restore(snapshot)
            self.aborts += 1
            raise
        try:
            self.db.maybe_fail("commit")
        except BaseException:
            # a failed commit leaves nothing behind
            self.db.restore(snapshot)
            raise
        self.commits += 1

    async def ping(self) -> None:
        self.db.maybe_fail("ping")


class FakeMovieRepository:
    def __init__(self, db: InMemoryDatabase):
        self.db = db

    async def find_by_movie_id(self, movie_id: int, session=None) -> Optional[Movie]:
        self.db.maybe_fail("find_by_movie_id")
        document = self.db.movies.get(movie_id)
        return Movie.model_validate(document) if document else None

    async def find_by_natural_key(self, key: str, session=None) -> List[Movie]:
        self.db.maybe_fail("find_by_natural_key")
        return [
            Movie.model_validate(doc)
            for _, doc in sorted(self.db.movies.items())
            if natural_key(doc) == key
        ]

    async def iter_title_year(self):
        for movie_id in sorted(self.db.movies):
            doc = self.db.movies[movie_id]
            yield {"movieId": doc["movieId"], "title": doc["title"], "year": doc.get("year")}

    async def iter_movie_ids(self):
        for movie_id in sorted(self.db.movies):
            yield movie_id

    async def update_aggregate(self, movie_id: int, aggregate: RatingAggregate, session=None) -> bool:
        self.db.maybe_fail("update_aggregate")
        document = self.db.movies.get(movie_id)
        if document is None:
            return False
        document.update(_aggregate_fields(aggregate))
        return True

    async def delete_by_movie_ids(self, movie_ids, session=None) -> int:
        self.db.maybe_fail("delete_by_movie_ids")
        deleted = 0
        for movie_id in movie_ids:
            if self.db.movies.pop(movie_id, None) is not None:
                deleted += 1
        return deleted

    async def bulk_update_aggregates(self, aggregates, written_before=None):
        failing = set(self.db.fail_on.get("bulk_update_ids", []))
        matched, failed = 0, []
        for movie_id, aggregate in aggregates:
            if movie_id in failing:
                failed.append(movie_id)
                continue
            document = self.db.movies.get(movie_id)
            if document is None:
                continue
            written = document.get("ratingsUpdatedAt")
            if written_before is not None and written is not None and written >= written_before:
                continue
            document.update(_aggregate_fields(aggregate))
            matched += 1
        return matched, failed


class FakeRatingRepository:
    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self.reassign_calls = 0

    async def insert_rating(self, rating: Rating, session=None) -> Rating:
        self.db.maybe_fail("insert_rating")
        rating_id = ObjectId()
        document = rating.to_document()
        document["_id"] = rating_id
        self.db.ratings[rating_id] = document
        return rating.model_copy(update={"id": rating_id})

    async def find_values_for_movie(self, movie_id: int, session=None) -> List[float]:
        self.db.maybe_fail("find_values_for_movie")
        return [r["rating"] for r in self.db.ratings_for(movie_id)]

    async def find_ids_for_movies(self, movie_ids, session=None):
        return [r["_id"] for r in self.db.ratings.values() if r["movieId"] in set(movie_ids)]

    async def reassign(self, rating_ids, from_movie_ids, to_movie_id, session=None) -> int:
        self.reassign_calls += 1
        moved = 0
        sources = set(from_movie_ids)
        for rating_id in rating_ids:
            document = self.db.ratings.get(rating_id)
            if document is not None and document["movieId"] in sources:
                document["movieId"] = to_movie_id
                moved += 1
        self.db.maybe_fail("reassign")
        return moved

    async def iter_totals_by_movie(self):
        grouped: Dict[int, List[float]] = {}
        for document in self.db.ratings.values():
            grouped.setdefault(document["movieId"], []).append(document["rating"])
        for movie_id in sorted(grouped):
            yield movie_id, sum(grouped[movie_id]), len(grouped[movie_id])
