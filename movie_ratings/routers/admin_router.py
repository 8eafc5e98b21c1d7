"""
Operator endpoints for duplicate detection, merging and aggregate repair.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from movie_ratings.core.errors import ErrorResponseModel, InvalidInputError
from movie_ratings.dependencies.services import (
    get_deduplication_service,
    get_rating_service,
)
from movie_ratings.services.deduplication_service import DeduplicationService
from movie_ratings.services.rating_service import RatingService
from movie_ratings.utils.correlation_id import get_correlation_id
from movie_ratings.utils.natural_key import make_natural_key
from movie_ratings.utils.retry import with_store_retry

router = APIRouter()


class MergeRequest(BaseModel):
    """Identify a duplicate group either by title and year or by its natural key."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    year: Optional[int] = None
    natural_key: Optional[str] = Field(default=None, alias="naturalKey")

    def resolve_key(self) -> str:
        if self.natural_key:
            return self.natural_key
        if self.title:
            return make_natural_key(self.title, self.year)
        raise InvalidInputError("Either naturalKey or title is required", details={"field": "title"})


@router.get("/duplicates", responses={400: {"model": ErrorResponseModel}})
async def find_duplicates(
    title: str = Query(..., min_length=1),
    year: Optional[int] = Query(default=None),
    service: DeduplicationService = Depends(get_deduplication_service),
):
    """List every movie sharing the natural key built from title and year."""
    key = make_natural_key(title, year)
    movies = await with_store_retry(lambda: service.find_duplicates(key), "find_duplicates")
    return {
        "naturalKey": key,
        "count": len(movies),
        "movies": [movie.model_dump(by_alias=True) for movie in movies],
    }


@router.get("/duplicates/scan")
async def scan_duplicates(service: DeduplicationService = Depends(get_deduplication_service)):
    groups = await with_store_retry(service.find_duplicate_keys, "scan_duplicates")
    return {"count": len(groups), "groups": [group.model_dump() for group in groups]}


@router.post("/duplicates/merge", responses={400: {"model": ErrorResponseModel}})
async def merge_duplicates(
    body: MergeRequest,
    service: DeduplicationService = Depends(get_deduplication_service),
):
    """Merge one duplicate group. Safe to repeat: a merged key reports no_op."""
    key = body.resolve_key()
    correlation_id = get_correlation_id()
    result = await with_store_retry(
        lambda: service.merge_group(key, correlation_id=correlation_id), "merge_group"
    )
    return result.model_dump(mode="json")


@router.post(
    "/movies/{movie_id}/recalculate",
    responses={400: {"model": ErrorResponseModel}, 404: {"model": ErrorResponseModel}},
)
async def recalculate_movie(
    movie_id: int,
    service: RatingService = Depends(get_rating_service),
):
    aggregate = await with_store_retry(
        lambda: service.recalculate_movie_rating(movie_id, correlation_id=get_correlation_id()),
        "recalculate_movie_rating",
    )
    return {"movieId": movie_id, **aggregate.model_dump(by_alias=True)}


@router.post("/movies/recalculate")
async def recalculate_all(
    batch_size: Optional[int] = Query(default=None, alias="batchSize", gt=0),
    service: RatingService = Depends(get_rating_service),
):
    """Recompute every movie's aggregate from the ratings collection."""
    report = await service.recalculate_all(batch_size=batch_size, correlation_id=get_correlation_id())
    return report.model_dump()
