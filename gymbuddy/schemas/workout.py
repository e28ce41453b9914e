from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

WorkoutStatus = Literal["scheduled", "completed", "cancelled"]
WorkoutTab = Literal["upcoming", "completed", "cancelled", "past"]

class WorkoutCreate(BaseModel):
    match_id: UUID
    user_id: UUID
    scheduled_at: datetime
    duration_minutes: int = Field(60, ge=15, le=180)
    location: str = Field(min_length=1)
    notes: Optional[str] = None

class WorkoutResponse(BaseModel):
    id: UUID
    match_id: UUID
    scheduled_at: datetime
    duration_minutes: int
    location: str
    notes: Optional[str] = None
    status: WorkoutStatus
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class WorkoutStatusUpdate(BaseModel):
    user_id: UUID
    status: Literal["completed", "cancelled"]
