"""
Fitness profile schemas.

``FitnessAttributes`` is the immutable scoring input; the ``*Upsert`` and
``*Response`` models are the API-facing shapes of the ``fitness_profiles``
table.
"""

from __future__ import annotations

from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

FitnessLevel = Literal["beginner", "intermediate", "advanced"]
FitnessGoal = Literal["bulking", "cutting", "maintenance", "endurance", "flexibility", "general"]
TimeSlot = Literal["early_morning", "morning", "midday", "afternoon", "evening", "late_evening"]
Weekday = Literal["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


class FitnessAttributes(BaseModel):
    """One user's training attributes, as consumed by the compatibility scorer.

    Level and goal are plain strings here: the scorer compares them verbatim
    and never validates, so legacy values stored in the table still score.
    """

    model_config = ConfigDict(frozen=True)

    level: str
    goal: str
    styles: frozenset[str] = frozenset()
    preferred_time_slots: frozenset[str] = frozenset()
    availability_days: frozenset[str] = frozenset()
    location: str = ""
    gym_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "FitnessAttributes":
        """Build attributes from a ``fitness_profiles`` row."""
        return cls(
            level=row.get("fitness_level") or "",
            goal=row.get("fitness_goal") or "",
            styles=frozenset(row.get("fitness_style") or ()),
            preferred_time_slots=frozenset(row.get("preferred_time_slots") or ()),
            availability_days=frozenset(row.get("availability_days") or ()),
            location=row.get("location") or "",
            gym_name=row.get("gym_name"),
        )


class FitnessProfileUpsert(BaseModel):
    fitness_level: FitnessLevel
    fitness_goal: FitnessGoal
    fitness_style: list[str] = Field(min_length=1)
    preferred_time_slots: list[TimeSlot] = []
    availability_days: list[Weekday] = []
    location: str = Field(min_length=1)
    gym_name: Optional[str] = None


class FitnessProfileResponse(BaseModel):
    id: UUID
    fitness_level: Optional[str] = None
    fitness_goal: Optional[str] = None
    fitness_style: list[str] = []
    preferred_time_slots: list[str] = []
    availability_days: list[str] = []
    location: str = ""
    gym_name: Optional[str] = None
    is_complete: bool = False

    model_config = {"from_attributes": True}


class FitnessLabels(BaseModel):
    goals: dict[str, str]
    styles: dict[str, str]
    time_slots: dict[str, str]
    days: dict[str, str]
