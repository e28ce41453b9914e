"""
GymBuddy — Profiles API

Endpoints for public profile CRUD, the owner's fitness profile, and the
display label tables for fitness attributes.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, status

from gymbuddy.api.dependencies import get_store, notify
from gymbuddy.schemas.fitness_profile import (
    FitnessLabels,
    FitnessProfileResponse,
    FitnessProfileUpsert,
)
from gymbuddy.schemas.profile import ProfileCreate, ProfileResponse, ProfileUpdate
from gymbuddy.services.formatting import DAY_LABELS, GOAL_LABELS, STYLE_LABELS, TIME_SLOT_LABELS
from gymbuddy.services.profile_service import (
    ProfileConflictError,
    ProfileNotFoundError,
    ProfileService,
    is_complete,
)
from gymbuddy.services.store import RowStore, StoreError

logger = structlog.get_logger("gymbuddy.api.profiles")

router = APIRouter()
labels_router = APIRouter()


def _store_failure(exc: StoreError):
    logger.error("profile_store_failure", error=str(exc))
    return notify(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Error",
        "Failed to save your profile. Please try again.",
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST / — Create a profile
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a profile",
)
async def create_profile(
    payload: ProfileCreate,
    store: RowStore = Depends(get_store),
) -> dict:
    try:
        return await ProfileService(store).create_profile(payload.model_dump())
    except ProfileConflictError as exc:
        raise notify(status.HTTP_409_CONFLICT, "Username Taken", str(exc))
    except StoreError as exc:
        raise _store_failure(exc)


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id} — Get profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Get a profile by user ID",
)
async def get_profile(
    user_id: uuid.UUID,
    store: RowStore = Depends(get_store),
) -> dict:
    try:
        return await ProfileService(store).get_profile(user_id)
    except ProfileNotFoundError as exc:
        raise notify(status.HTTP_404_NOT_FOUND, "Not Found", str(exc))
    except StoreError as exc:
        raise _store_failure(exc)


# ──────────────────────────────────────────────────────────────────────────────
# PUT /{user_id} — Update profile
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/{user_id}",
    response_model=ProfileResponse,
    summary="Update profile details",
)
async def update_profile(
    user_id: uuid.UUID,
    payload: ProfileUpdate,
    store: RowStore = Depends(get_store),
) -> dict:
    """Only fields present in the request body are applied."""
    try:
        return await ProfileService(store).update_profile(
            user_id, payload.model_dump(exclude_unset=True)
        )
    except ProfileNotFoundError as exc:
        raise notify(status.HTTP_404_NOT_FOUND, "Not Found", str(exc))
    except ProfileConflictError as exc:
        raise notify(status.HTTP_409_CONFLICT, "Username Taken", str(exc))
    except StoreError as exc:
        raise _store_failure(exc)


# ──────────────────────────────────────────────────────────────────────────────
# GET/PUT /{user_id}/fitness — Fitness profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/fitness",
    response_model=FitnessProfileResponse,
    summary="Get a user's fitness profile",
)
async def get_fitness_profile(
    user_id: uuid.UUID,
    store: RowStore = Depends(get_store),
) -> dict:
    try:
        row = await ProfileService(store).get_fitness_profile(user_id)
    except StoreError as exc:
        raise _store_failure(exc)

    if row is None:
        raise notify(
            status.HTTP_404_NOT_FOUND,
            "Complete Your Profile",
            "Please complete your fitness profile to find matches.",
        )
    return {**row, "is_complete": is_complete(row)}


@router.put(
    "/{user_id}/fitness",
    response_model=FitnessProfileResponse,
    summary="Create or replace a user's fitness profile",
)
async def upsert_fitness_profile(
    user_id: uuid.UUID,
    payload: FitnessProfileUpsert,
    store: RowStore = Depends(get_store),
) -> dict:
    data = payload.model_dump()
    # Stored as JSON arrays; de-duplicate while keeping the submitted order
    for key in ("fitness_style", "preferred_time_slots", "availability_days"):
        data[key] = list(dict.fromkeys(data[key]))

    try:
        row = await ProfileService(store).upsert_fitness_profile(user_id, data)
    except ProfileNotFoundError as exc:
        raise notify(status.HTTP_404_NOT_FOUND, "Not Found", str(exc))
    except StoreError as exc:
        raise _store_failure(exc)

    return {**row, "is_complete": is_complete(row)}


# ──────────────────────────────────────────────────────────────────────────────
# GET /fitness/labels — Display label tables
# ──────────────────────────────────────────────────────────────────────────────

@labels_router.get(
    "/labels",
    response_model=FitnessLabels,
    summary="Display labels for fitness attributes",
)
async def fitness_labels() -> FitnessLabels:
    return FitnessLabels(
        goals=GOAL_LABELS,
        styles=STYLE_LABELS,
        time_slots=TIME_SLOT_LABELS,
        days=DAY_LABELS,
    )
