"""
GymBuddy — Home dashboard summary.
"""

from __future__ import annotations

import uuid
from datetime import datetime

import structlog

from gymbuddy.services.store import RowStore
from gymbuddy.services.workout_service import WorkoutService

logger = structlog.get_logger("gymbuddy.dashboard_service")


class DashboardService:
    UPCOMING_WORKOUTS_LIMIT: int = 3
    RECENT_MESSAGES_LIMIT: int = 5

    def __init__(self, store: RowStore, workout_service: WorkoutService | None = None) -> None:
        self.store = store
        self.workouts = workout_service or WorkoutService(store)

    async def summary(self, user_id: uuid.UUID, now: datetime | None = None) -> dict:
        """Match counts by status, the next few workouts and the latest
        messages across the user's accepted matches."""
        matches = []
        for column in ("user1_id", "user2_id"):
            matches.extend(await self.store.list("matches", {column: user_id}))

        counts = {
            "pending": sum(1 for m in matches if m["status"] == "pending"),
            "accepted": sum(1 for m in matches if m["status"] == "accepted"),
        }

        upcoming = await self.workouts.list_workouts(user_id, "upcoming", now=now)

        accepted_ids = [m["id"] for m in matches if m["status"] == "accepted"]
        recent_messages: list[dict] = []
        if accepted_ids:
            recent_messages = await self.store.list("messages", {"match_id": accepted_ids})
            # newest first; equal timestamps keep reverse insertion order
            recent_messages.sort(key=lambda m: m["created_at"])
            recent_messages.reverse()

        logger.info(
            "dashboard_summary",
            user_id=str(user_id),
            pending=counts["pending"],
            accepted=counts["accepted"],
            upcoming=len(upcoming),
        )

        return {
            "matches": counts,
            "upcoming_workouts": upcoming[: self.UPCOMING_WORKOUTS_LIMIT],
            "recent_messages": recent_messages[: self.RECENT_MESSAGES_LIMIT],
        }
