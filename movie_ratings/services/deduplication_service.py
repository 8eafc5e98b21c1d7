"""
Deduplication Service - finds and merges duplicate movie records.

A duplicate group is every movie sharing one natural key. Merging keeps the
lowest movieId, moves the other records' ratings onto it, recomputes its
aggregate and deletes the others, all inside one transaction.
"""

import time
from collections import defaultdict
from typing import Dict, List, Optional

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from movie_ratings.core.config import Config, config as default_config
from movie_ratings.core.errors import (
    ConflictError,
    ErrorResponse,
    InvalidInputError,
    StoreUnavailableError,
)
from movie_ratings.core.logger import logger
from movie_ratings.db.mongodb import MongoStore
from movie_ratings.models.merge import (
    DuplicateGroupSummary,
    MergePassReport,
    MergeResult,
    MergeStatus,
)
from movie_ratings.models.movie import Movie
from movie_ratings.repositories.movie_repository import MovieRepository
from movie_ratings.repositories.rating_repository import RatingRepository
from movie_ratings.services.aggregate import compute_aggregate
from movie_ratings.utils.natural_key import make_natural_key, natural_key, parse_natural_key


class DeduplicationService:
    """Service for detecting and merging duplicate movie records."""

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
    def from_store(cls, store: MongoStore) -> "DeduplicationService":
        return cls(
            store,
            MovieRepository(store.movies),
            RatingRepository(store.ratings),
            settings=store.settings,
        )

    @staticmethod
    def _require_key(key: str) -> str:
        if isinstance(key, str):
            title, year = parse_natural_key(key)
            if title:
                return make_natural_key(title, year)
        raise InvalidInputError("A natural key (title and year) is required", details={"field": "naturalKey"})

    async def find_duplicates(self, key: str) -> List[Movie]:
        """
        Movies sharing natural key ``key``, lowest movieId first.
        The first entry is the record a merge would keep.
        """
        key = self._require_key(key)
        return await self.movies.find_by_natural_key(key)

    async def find_duplicate_keys(self) -> List[DuplicateGroupSummary]:
        """Scan the catalogue for every natural key held by more than one movie."""
        groups: Dict[str, List[int]] = defaultdict(list)
        async for document in self.movies.iter_title_year():
            groups[natural_key(document)].append(document["movieId"])

        return [
            DuplicateGroupSummary(natural_key=key, movie_ids=sorted(ids))
            for key, ids in sorted(groups.items())
            if len(ids) > 1
        ]

    async def merge_group(
        self,
        key: str,
        correlation_id: Optional[str] = None,
    ) -> MergeResult:
        """
        Merge every movie sharing ``key`` into the lowest movieId.

        Returns:
            MergeResult in state merged, no_op (fewer than two records) or
            aborted (transaction rolled back, store unchanged)
        """
        key = self._require_key(key)

        group = await self.movies.find_by_natural_key(key)
        if len(group) < 2:
            logger.info(
                f"No duplicates to merge for '{key}'",
                correlation_id=correlation_id,
                metadata={"event": "merge_noop", "naturalKey": key, "found": len(group)}
            )
            return MergeResult.no_op(key, survivor_id=group[0].movie_id if group else None)

        survivor_id = group[0].movie_id
        duplicate_ids = [movie.movie_id for movie in group[1:]]
        max_attempts = max(1, self.settings.merge_max_attempts)
        started = time.perf_counter()

        logger.info(
            f"Merging {len(duplicate_ids)} duplicates of '{key}' into movie {survivor_id}",
            correlation_id=correlation_id,
            metadata={
                "event": "merge_started",
                "naturalKey": key,
                "survivorId": survivor_id,
                "duplicateIds": duplicate_ids,
            }
        )

        for attempt in range(1, max_attempts + 1):
            try:
                result = await self._merge_in_transaction(key)
            except (ConflictError, StoreUnavailableError) as e:
                if attempt < max_attempts:
                    logger.warning(
                        f"Merge of '{key}' hit a retryable error, restarting transaction",
                        correlation_id=correlation_id,
                        metadata={
                            "event": "merge_retry",
                            "naturalKey": key,
                            "attempt": attempt,
                            "reason": e.message,
                        }
                    )
                    continue
                return self._aborted(key, e.message, survivor_id, duplicate_ids, attempt, correlation_id)
            except (ErrorResponse, PyMongoError, ValidationError) as e:
                reason = e.message if isinstance(e, ErrorResponse) else str(e)
                return self._aborted(key, reason, survivor_id, duplicate_ids, attempt, correlation_id)

            result.attempts = attempt
            if result.status == MergeStatus.MERGED:
                logger.info(
                    f"Merged duplicates of '{key}' into movie {result.survivor_id}",
                    correlation_id=correlation_id,
                    metadata={
                        "event": "merge_committed",
                        "naturalKey": key,
                        "survivorId": result.survivor_id,
                        "deletedIds": result.duplicate_ids,
                        "movedCount": result.moved_count,
                        "averageRating": result.aggregate.average,
                        "ratingCount": result.aggregate.count,
                        "attempts": attempt,
                    }
                )
                logger.performance(
                    "merge_group",
                    int((time.perf_counter() - started) * 1000),
                    metadata={"naturalKey": key},
                )
            return result

    async def _merge_in_transaction(self, key: str) -> MergeResult:
        async with self.store.transaction() as session:
            # Re-read the group inside the transaction; the pre-check above may be stale
            group = await self.movies.find_by_natural_key(key, session=session)
            if len(group) < 2:
                return MergeResult.no_op(key, survivor_id=group[0].movie_id if group else None)

            survivor = group[0]
            duplicate_ids = [movie.movie_id for movie in group[1:]]

            moved = 0
            rating_ids = await self.ratings.find_ids_for_movies(duplicate_ids, session=session)
            if rating_ids:
                moved = await self.ratings.reassign(
                    rating_ids, duplicate_ids, survivor.movie_id, session=session
                )

            values = await self.ratings.find_values_for_movie(survivor.movie_id, session=session)
            aggregate = compute_aggregate(values)
            await self.movies.update_aggregate(survivor.movie_id, aggregate, session=session)

            await self.movies.delete_by_movie_ids(duplicate_ids, session=session)

        return MergeResult(
            status=MergeStatus.MERGED,
            natural_key=key,
            survivor_id=survivor.movie_id,
            duplicate_ids=duplicate_ids,
            moved_count=moved,
            aggregate=aggregate,
        )

    def _aborted(
        self,
        key: str,
        reason: str,
        survivor_id: int,
        duplicate_ids: List[int],
        attempts: int,
        correlation_id: Optional[str],
    ) -> MergeResult:
        logger.error(
            f"Merge of '{key}' aborted",
            correlation_id=correlation_id,
            error=reason,
            metadata={
                "event": "merge_aborted",
                "naturalKey": key,
                "survivorId": survivor_id,
                "duplicateIds": duplicate_ids,
                "attempts": attempts,
            }
        )
        return MergeResult.aborted(
            key,
            reason,
            survivor_id=survivor_id,
            duplicate_ids=duplicate_ids,
            attempts=attempts,
        )

    async def merge_all(
        self,
        dry_run: bool = False,
        correlation_id: Optional[str] = None,
    ) -> MergePassReport:
        """
        Merge every duplicate group in the catalogue, one transaction per group.
        A dry run only reports the groups.
        """
        groups = await self.find_duplicate_keys()
        report = MergePassReport(dry_run=dry_run, groups=groups)

        logger.info(
            f"Found {len(groups)} duplicate groups",
            correlation_id=correlation_id,
            metadata={"event": "merge_pass_started", "groups": len(groups), "dryRun": dry_run}
        )
        if dry_run:
            return report

        for group in groups:
            report.results.append(await self.merge_group(group.natural_key, correlation_id=correlation_id))

        logger.info(
            "Merge pass finished",
            correlation_id=correlation_id,
            metadata={
                "event": "merge_pass_finished",
                "merged": report.merged,
                "noOp": report.no_op,
                "aborted": report.aborted,
            }
        )
        return report
