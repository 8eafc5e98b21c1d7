"""Movie model and rating aggregate"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RatingAggregate(BaseModel):
    """Derived (average, count) pair stored on a movie"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    average: float = Field(default=0.0, alias="averageRating")
    count: int = Field(default=0, alias="ratingCount")


class Movie(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    movie_id: int = Field(alias="movieId")
    title: str
    year: Optional[int] = None
    genres: List[str] = Field(default_factory=list)
    average_rating: float = Field(default=0.0, alias="averageRating")
    rating_count: int = Field(default=0, alias="ratingCount")

    @property
    def aggregate(self) -> RatingAggregate:
        return RatingAggregate(average=self.average_rating, count=self.rating_count)
