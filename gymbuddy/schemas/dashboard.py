from pydantic import BaseModel

from gymbuddy.schemas.message import MessageResponse
from gymbuddy.schemas.workout import WorkoutResponse

class MatchCounts(BaseModel):
    pending: int = 0
    accepted: int = 0

class DashboardResponse(BaseModel):
    matches: MatchCounts
    upcoming_workouts: list[WorkoutResponse] = []
    recent_messages: list[MessageResponse] = []
