from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional, Union

from gymbuddy.schemas.fitness_profile import FitnessProfileResponse
from gymbuddy.schemas.profile import ProfileResponse

Criterion = Literal["goal", "style", "time", "location", "level", "availability"]
MatchStatus = Literal["pending", "accepted", "rejected"]


class CriterionResult(BaseModel):
    """Outcome of one scoring criterion.

    ``detail`` carries the shared count for the overlap criteria and
    ``"gym"`` / ``"location"`` for the location criterion.
    """

    model_config = ConfigDict(frozen=True)

    criterion: Criterion
    points: int
    detail: Optional[Union[int, str]] = None
    reason: Optional[str] = None

    @property
    def triggered(self) -> bool:
        return self.reason is not None


class CompatibilityBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    raw_score: int
    score: float
    criteria: tuple[CriterionResult, ...]

    @property
    def reasons(self) -> list[str]:
        return [c.reason for c in self.criteria if c.reason is not None]


class ScoredCandidate(BaseModel):
    user_id: UUID
    profile: Optional[ProfileResponse] = None
    fitness_profile: FitnessProfileResponse
    compatibility_score: float
    match_reasons: list[str]
    criteria: list[CriterionResult] = []


class CategoryScore(BaseModel):
    name: str
    percentage: int
    detail: str


class MatchDetailsResponse(BaseModel):
    candidate: ScoredCandidate
    categories: list[CategoryScore]


class MatchRecordResponse(BaseModel):
    id: UUID
    user1_id: UUID
    user2_id: UUID
    status: MatchStatus
    compatibility_score: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ExistingMatchResponse(MatchRecordResponse):
    other_user: Optional[ProfileResponse] = None
    other_user_fitness_profile: Optional[FitnessProfileResponse] = None


class MatchRespondRequest(BaseModel):
    user_id: UUID
    action: Literal["accept", "reject"]
