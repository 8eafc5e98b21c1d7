"""
Rating Service - rating submission and aggregate repair.

Aggregates are always recomputed from the complete set of ratings bound to a
movie, never adjusted incrementally, so any later write or a repair pass
brings a stale aggregate back in line with the ratings collection.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from movie_ratings.core.config import Config, config as default_config
from movie_ratings.core.errors import NotFoundError
from movie_ratings.core.logger import logger
from movie_ratings.db.mongodb import MongoStore
from movie_ratings.models.merge import RepairReport
from movie_ratings.models.movie import Movie, RatingAggregate
from movie_ratings.models.rating import Rating, RatingSubmission
from movie_ratings.repositories.movie_repository import MovieRepository
from movie_ratings.repositories.rating_repository import RatingRepository
from movie_ratings.services.aggregate import aggregate_from_totals, compute_aggregate
from movie_ratings.validators.rating_validators import (
    validate_positive_id,
    validate_rating_value,
)


class RatingService:
    """Service for submitting ratings and keeping movie aggregates in sync."""

    def __init__(
        self,
        store: MongoStore,
        movies: MovieRepository,
        ratings: RatingRepository,
        settings: Optional[Config] = None,
    ):
        self.store = store
        self.movies = movies
        self.ratings = ratings
        self.settings = settings or default_config

    @classmethod
    def from_store(cls, store: MongoStore) -> "RatingService":
        return cls(
            store,
            MovieRepository(store.movies),
            RatingRepository(store.ratings),
            settings=store.settings,
        )

    async def submit_rating(
        self,
        movie_id: int,
        user_id: int,
        rating: float,
        correlation_id: Optional[str] = None,
    ) -> RatingSubmission:
        """
        Persist one rating and recompute the movie's aggregate.

        Args:
            movie_id: Movie being rated
            user_id: Rater identity (positive)
            rating: Value in [0.5, 5.0] on a 0.5 grid
            correlation_id: Request correlation ID

        Returns:
            RatingSubmission with the stored rating and the new aggregate

        Raises:
            InvalidInputError: bad identity or rating value
            NotFoundError: movie does not exist (nothing is written)
            ConflictError: the transaction lost a write conflict
            StoreUnavailableError: the store could not be reached
        """
        movie_id = validate_positive_id(movie_id, "movieId")
        user_id = validate_positive_id(user_id, "userId")
        value = validate_rating_value(rating)

        if self.settings.rating_transactions:
            async with self.store.transaction() as session:
                saved, aggregate = await self._submit(movie_id, user_id, value, session)
        else:
            saved, aggregate = await self._submit(movie_id, user_id, value, None)

        logger.info(
            f"Rating submitted for movie {movie_id}",
            correlation_id=correlation_id,
            metadata={
                "event": "rating_submitted",
                "movieId": movie_id,
                "userId": user_id,
                "rating": value,
                "averageRating": aggregate.average,
                "ratingCount": aggregate.count,
            }
        )
        return RatingSubmission(movie_id=movie_id, rating=saved, aggregate=aggregate)

    async def _submit(self, movie_id: int, user_id: int, value: float, session) -> Tuple[Rating, RatingAggregate]:
        movie = await self.movies.find_by_movie_id(movie_id, session=session)
        if movie is None:
            raise NotFoundError("Movie not found", details={"movieId": movie_id})

        saved = await self.ratings.insert_rating(
            Rating(movie_id=movie_id, user_id=user_id, rating=value),
            session=session,
        )
        aggregate = await self._recompute(movie_id, session)
        return saved, aggregate

    async def _recompute(self, movie_id: int, session=None) -> RatingAggregate:
        values = await self.ratings.find_values_for_movie(movie_id, session=session)
        aggregate = compute_aggregate(values)
        await self.movies.update_aggregate(movie_id, aggregate, session=session)
        return aggregate

    async def recalculate_movie_rating(
        self,
        movie_id: int,
        correlation_id: Optional[str] = None,
    ) -> RatingAggregate:
        """Recompute one movie's stored aggregate from its ratings."""
        movie_id = validate_positive_id(movie_id, "movieId")

        if self.settings.rating_transactions:
            async with self.store.transaction() as session:
                movie, aggregate = await self._recalculate(movie_id, session)
        else:
            movie, aggregate = await self._recalculate(movie_id, None)

        if aggregate != movie.aggregate:
            logger.warning(
                f"Repaired stale aggregate for movie {movie_id}",
                correlation_id=correlation_id,
                metadata={
                    "event": "aggregate_repaired",
                    "movieId": movie_id,
                    "previous": movie.aggregate.model_dump(),
                    "current": aggregate.model_dump(),
                }
            )
        return aggregate

    async def _recalculate(self, movie_id: int, session) -> Tuple[Movie, RatingAggregate]:
        movie = await self.movies.find_by_movie_id(movie_id, session=session)
        if movie is None:
            raise NotFoundError("Movie not found", details={"movieId": movie_id})
        return movie, await self._recompute(movie_id, session)

    async def recalculate_all(
        self,
        batch_size: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> RepairReport:
        """
        Recompute every movie's aggregate and write them back in unordered
        bulk batches.

        Sums and counts are grouped by the store and merged with the movie
        stream in movieId order. A movie whose aggregate was written after
        the pass started (less the ``repair_recent_write_ms`` window) is
        skipped, so a rating submitted mid-pass is never overwritten with an
        older total. A failed write is counted and reported, not raised.
        """
        batch_size = batch_size or self.settings.repair_batch_size
        if batch_size <= 0:
            batch_size = self.settings.repair_batch_size

        written_before = datetime.now(timezone.utc) - timedelta(
            milliseconds=self.settings.repair_recent_write_ms
        )

        report = RepairReport()
        batch: List[Tuple[int, RatingAggregate]] = []
        orphans: List[int] = []
        orphan_count = 0

        totals = self.ratings.iter_totals_by_movie()
        pending = await anext(totals, None)

        async for movie_id in self.movies.iter_movie_ids():
            while pending is not None and pending[0] < movie_id:
                orphan_count += 1
                if len(orphans) < 50:
                    orphans.append(pending[0])
                pending = await anext(totals, None)

            if pending is not None and pending[0] == movie_id:
                aggregate = aggregate_from_totals(pending[1], pending[2])
                pending = await anext(totals, None)
            else:
                aggregate = RatingAggregate()

            report.scanned += 1
            batch.append((movie_id, aggregate))
            if len(batch) >= batch_size:
                await self._flush(batch, report, written_before)
                batch = []

        if batch:
            await self._flush(batch, report, written_before)

        while pending is not None:
            orphan_count += 1
            if len(orphans) < 50:
                orphans.append(pending[0])
            pending = await anext(totals, None)

        if orphan_count:
            logger.warning(
                f"Found ratings for {orphan_count} movies that do not exist",
                correlation_id=correlation_id,
                metadata={"event": "orphan_ratings", "movieIds": orphans}
            )

        logger.info(
            "Rating aggregates recalculated",
            correlation_id=correlation_id,
            metadata={"event": "aggregates_recalculated", **report.model_dump()}
        )
        return report

    async def _flush(
        self,
        batch: List[Tuple[int, RatingAggregate]],
        report: RepairReport,
        written_before: datetime,
    ) -> None:
        matched, failed = await self.movies.bulk_update_aggregates(batch, written_before=written_before)
        report.updated += matched
        report.skipped += len(batch) - matched - len(failed)
        report.failed += len(failed)
        report.failed_movie_ids.extend(failed)
