from fastapi import APIRouter, Depends, status

from movie_ratings.core.errors import ErrorResponseModel
from movie_ratings.models.rating import RatingRequest
from movie_ratings.services.rating_service import RatingService
from movie_ratings.dependencies.services import get_rating_service
from movie_ratings.utils.correlation_id import get_correlation_id

router = APIRouter()


@router.post(
    "/{movie_id}/rate",
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponseModel},
        404: {"model": ErrorResponseModel},
        409: {"model": ErrorResponseModel},
        503: {"model": ErrorResponseModel},
    },
)
async def rate_movie(
    movie_id: int,
    body: RatingRequest,
    service: RatingService = Depends(get_rating_service),
):
    """
    Submit a rating (0.5 - 5.0 in 0.5 steps) and return the movie's
    recomputed average and count.
    """
    submission = await service.submit_rating(
        movie_id, body.user_id, body.rating, correlation_id=get_correlation_id()
    )
    return {
        "message": "Rating submitted successfully",
        "rating": submission.rating.model_dump(by_alias=True),
        "updatedMovie": {
            "movieId": submission.movie_id,
            "averageRating": submission.aggregate.average,
            "ratingCount": submission.aggregate.count,
        },
    }
