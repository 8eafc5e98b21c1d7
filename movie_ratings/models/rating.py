"""Rating event models"""
import time
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from movie_ratings.models.movie import RatingAggregate


def unix_now() -> int:
    """Helper for Pydantic default_factory: current unix time in seconds"""
    return int(time.time())


class Rating(BaseModel):
    """A persisted rating event"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[Any] = Field(default=None, alias="_id")
    movie_id: int = Field(alias="movieId")
    user_id: int = Field(alias="userId")
    rating: float
    timestamp: int = Field(default_factory=unix_now)

    @field_serializer("id")
    def serialize_id(self, value):
        return str(value) if value is not None else None

    def to_document(self) -> dict:
        """Document shape written to the ratings collection"""
        return self.model_dump(by_alias=True, exclude={"id"})


class RatingRequest(BaseModel):
    """
    Body of POST /api/movies/{movie_id}/rate.

    Only the shape is checked here; range and step checks happen in the
    service so every caller gets the same InvalidInputError.
    """
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId")
    rating: float

    @field_validator("user_id", "rating", mode="before")
    @classmethod
    def reject_booleans(cls, value):
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value


class RatingSubmission(BaseModel):
    """Result of submitting one rating"""
    movie_id: int
    rating: Rating
    aggregate: RatingAggregate
