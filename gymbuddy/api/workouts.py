"""
GymBuddy — Workouts API

Scheduling, listing by tab, and closing out workouts between matched users.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status

from gymbuddy.api.dependencies import get_store, notify
from gymbuddy.schemas.workout import WorkoutCreate, WorkoutResponse, WorkoutStatusUpdate, WorkoutTab
from gymbuddy.services.store import RowStore, StoreError
from gymbuddy.services.workout_service import WorkoutError, WorkoutService

logger = structlog.get_logger("gymbuddy.api.workouts")

router = APIRouter()


def _get_workout_service(store: RowStore = Depends(get_store)) -> WorkoutService:
    return WorkoutService(store)


def _store_failure(exc: StoreError, description: str):
    logger.error("workout_store_failure", error=str(exc))
    return notify(status.HTTP_503_SERVICE_UNAVAILABLE, "Error", description)


@router.post(
    "/",
    response_model=WorkoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a workout with a match",
)
async def schedule_workout(
    payload: WorkoutCreate,
    service: WorkoutService = Depends(_get_workout_service),
) -> dict:
    try:
        return await service.schedule_workout(
            match_id=payload.match_id,
            user_id=payload.user_id,
            scheduled_at=payload.scheduled_at,
            duration_minutes=payload.duration_minutes,
            location=payload.location,
            notes=payload.notes,
        )
    except WorkoutError as exc:
        raise notify(status.HTTP_422_UNPROCESSABLE_ENTITY, "Not Allowed", str(exc))
    except StoreError as exc:
        raise _store_failure(exc, "Failed to schedule workout. Please try again.")


@router.get(
    "/{user_id}",
    response_model=list[WorkoutResponse],
    summary="List a user's workouts",
)
async def list_workouts(
    user_id: uuid.UUID,
    tab: WorkoutTab = Query("upcoming"),
    service: WorkoutService = Depends(_get_workout_service),
) -> list[dict]:
    try:
        return await service.list_workouts(user_id, tab)
    except StoreError as exc:
        raise _store_failure(exc, "Failed to load workouts. Please try again.")


@router.patch(
    "/{workout_id}",
    response_model=WorkoutResponse,
    summary="Mark a workout completed or cancelled",
)
async def update_workout_status(
    workout_id: uuid.UUID,
    payload: WorkoutStatusUpdate,
    service: WorkoutService = Depends(_get_workout_service),
) -> dict:
    try:
        return await service.update_status(workout_id, payload.user_id, payload.status)
    except WorkoutError as exc:
        raise notify(status.HTTP_422_UNPROCESSABLE_ENTITY, "Not Allowed", str(exc))
    except StoreError as exc:
        raise _store_failure(exc, "Failed to update workout status. Please try again.")
