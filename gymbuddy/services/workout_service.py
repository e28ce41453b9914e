"""
GymBuddy — Workout scheduling for accepted matches.

Workouts start ``scheduled`` and move once to ``completed`` or
``cancelled``.  Listing splits them into tabs:

  upcoming   scheduled and in the future
  past       scheduled but already in the past (never closed out)
  completed  status completed
  cancelled  status cancelled
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog

from gymbuddy.services.store import RowStore

logger = structlog.get_logger("gymbuddy.workout_service")

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180

_TABS = ("upcoming", "past", "completed", "cancelled")
_FINAL_STATUSES = ("completed", "cancelled")


class WorkoutError(ValueError):
    pass


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class WorkoutService:
    def __init__(self, store: RowStore) -> None:
        self.store = store

    async def schedule_workout(
        self,
        match_id: uuid.UUID,
        user_id: uuid.UUID,
        scheduled_at: datetime,
        duration_minutes: int,
        location: str,
        notes: str | None = None,
    ) -> dict:
        log = logger.bind(match_id=str(match_id), user_id=str(user_id))

        if not MIN_DURATION_MINUTES <= duration_minutes <= MAX_DURATION_MINUTES:
            raise WorkoutError(
                f"Duration must be between {MIN_DURATION_MINUTES} and "
                f"{MAX_DURATION_MINUTES} minutes, got {duration_minutes}."
            )
        if not location or not location.strip():
            raise WorkoutError("Workout location is required.")

        match = await self.store.get_by_id("matches", match_id)
        if match is None or str(user_id) not in (str(match["user1_id"]), str(match["user2_id"])):
            raise WorkoutError("You can only schedule workouts for your own matches.")
        if match["status"] != "accepted":
            raise WorkoutError("Workouts can only be scheduled for accepted matches.")

        workout = await self.store.insert("workouts", {
            "id": uuid.uuid4(),
            "match_id": match_id,
            "scheduled_at": _as_aware(scheduled_at),
            "duration_minutes": duration_minutes,
            "location": location.strip(),
            "notes": notes,
            "status": "scheduled",
        })
        log.info(
            "workout_scheduled",
            workout_id=str(workout["id"]),
            scheduled_at=workout["scheduled_at"].isoformat(),
        )
        return workout

    async def list_workouts(
        self,
        user_id: uuid.UUID,
        tab: str = "upcoming",
        now: datetime | None = None,
    ) -> list[dict]:
        """Workouts across the user's accepted matches for one tab, soonest
        first."""
        if tab not in _TABS:
            raise WorkoutError(f"Unknown tab {tab!r}.")
        now = _as_aware(now or datetime.now(timezone.utc))

        match_ids = await self._accepted_match_ids(user_id)
        if not match_ids:
            return []

        workouts = await self.store.list("workouts", {"match_id": match_ids})
        selected = [w for w in workouts if self._in_tab(w, tab, now)]
        selected.sort(key=lambda w: _as_aware(w["scheduled_at"]))

        logger.debug("list_workouts", user_id=str(user_id), tab=tab, count=len(selected))
        return selected

    async def update_status(
        self, workout_id: uuid.UUID, user_id: uuid.UUID, status: str
    ) -> dict:
        log = logger.bind(workout_id=str(workout_id), user_id=str(user_id), status=status)

        if status not in _FINAL_STATUSES:
            raise WorkoutError(f"Cannot move a workout to {status!r}.")

        workout = await self.store.get_by_id("workouts", workout_id)
        if workout is None:
            raise WorkoutError(f"Workout {workout_id} not found.")

        match = await self.store.get_by_id("matches", workout["match_id"])
        if match is None or str(user_id) not in (str(match["user1_id"]), str(match["user2_id"])):
            raise WorkoutError("You can only update your own workouts.")

        if workout["status"] != "scheduled":
            log.warning("update_status_not_scheduled", current=workout["status"])
            raise WorkoutError(f"Workout is already {workout['status']}.")

        updated = await self.store.update("workouts", workout_id, {"status": status})
        log.info("workout_status_updated")
        return updated

    async def _accepted_match_ids(self, user_id: uuid.UUID) -> list:
        ids = []
        for column in ("user1_id", "user2_id"):
            for match in await self.store.list("matches", {column: user_id, "status": "accepted"}):
                ids.append(match["id"])
        return ids

    @staticmethod
    def _in_tab(workout: dict, tab: str, now: datetime) -> bool:
        status = workout["status"]
        if tab in _FINAL_STATUSES:
            return status == tab
        if status != "scheduled":
            return False
        is_future = _as_aware(workout["scheduled_at"]) >= now
        return is_future if tab == "upcoming" else not is_future
