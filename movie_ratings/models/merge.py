"""Deduplication and repair result models"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from movie_ratings.models.movie import RatingAggregate


class MergeStatus(str, Enum):
    MERGED = "merged"
    NO_OP = "no_op"
    ABORTED = "aborted"


class MergeResult(BaseModel):
    """Terminal state of one merge_group call"""
    status: MergeStatus
    natural_key: str
    survivor_id: Optional[int] = None
    duplicate_ids: List[int] = Field(default_factory=list)
    moved_count: int = 0
    aggregate: Optional[RatingAggregate] = None
    reason: Optional[str] = None
    attempts: int = 0

    @classmethod
    def no_op(cls, natural_key: str, survivor_id: Optional[int] = None) -> "MergeResult":
        return cls(status=MergeStatus.NO_OP, natural_key=natural_key, survivor_id=survivor_id)

    @classmethod
    def aborted(
        cls,
        natural_key: str,
        reason: str,
        survivor_id: Optional[int] = None,
        duplicate_ids: Optional[List[int]] = None,
        attempts: int = 0,
    ) -> "MergeResult":
        return cls(
            status=MergeStatus.ABORTED,
            natural_key=natural_key,
            survivor_id=survivor_id,
            duplicate_ids=duplicate_ids or [],
            reason=reason,
            attempts=attempts,
        )


class DuplicateGroupSummary(BaseModel):
    natural_key: str
    movie_ids: List[int]


class MergePassReport(BaseModel):
    """Outcome of merging every duplicate group in the catalogue"""
    dry_run: bool = False
    groups: List[DuplicateGroupSummary] = Field(default_factory=list)
    results: List[MergeResult] = Field(default_factory=list)

    @property
    def merged(self) -> int:
        return sum(1 for r in self.results if r.status == MergeStatus.MERGED)

    @property
    def no_op(self) -> int:
        return sum(1 for r in self.results if r.status == MergeStatus.NO_OP)

    @property
    def aborted(self) -> int:
        return sum(1 for r in self.results if r.status == MergeStatus.ABORTED)


class RepairReport(BaseModel):
    """Outcome of recomputing stored aggregates from the ratings collection"""
    scanned: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    failed_movie_ids: List[int] = Field(default_factory=list)
