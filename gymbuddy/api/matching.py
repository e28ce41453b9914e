"""
GymBuddy — Matching API

Endpoints for loading scored candidates, the top-N shortlist, per-candidate
details, existing matches, and the request / accept / reject lifecycle.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status

from gymbuddy.api.dependencies import get_compatibility_service, get_store, notify
from gymbuddy.schemas.match import (
    ExistingMatchResponse,
    MatchDetailsResponse,
    MatchRecordResponse,
    MatchRespondRequest,
    ScoredCandidate,
)
from gymbuddy.services.compatibility_service import CompatibilityService
from gymbuddy.services.matching_service import (
    IncompleteProfileError,
    MatchActionError,
    MatchConflictError,
    MatchingService,
    MatchNotFoundError,
)
from gymbuddy.services.profile_service import ProfileNotFoundError
from gymbuddy.services.store import RowStore, StoreError

logger = structlog.get_logger("gymbuddy.api.matching")

router = APIRouter()


def _get_matching_service(
    store: RowStore = Depends(get_store),
    compatibility: CompatibilityService = Depends(get_compatibility_service),
) -> MatchingService:
    return MatchingService(store, compatibility)


def _translate(exc: Exception, failure_description: str):
    """Map a service exception onto the notification the client shows."""
    if isinstance(exc, ProfileNotFoundError):
        return notify(status.HTTP_404_NOT_FOUND, "Not Found", str(exc))
    if isinstance(exc, IncompleteProfileError):
        return notify(
            status.HTTP_409_CONFLICT,
            "Complete Your Profile",
            "Please complete your fitness profile to find matches.",
        )
    if isinstance(exc, MatchNotFoundError):
        return notify(status.HTTP_404_NOT_FOUND, "Not Found", str(exc))
    if isinstance(exc, MatchConflictError):
        return notify(status.HTTP_409_CONFLICT, "Already Matched", str(exc))
    if isinstance(exc, MatchActionError):
        return notify(status.HTTP_422_UNPROCESSABLE_ENTITY, "Not Allowed", str(exc))

    logger.error("matching_store_failure", error=str(exc))
    return notify(status.HTTP_503_SERVICE_UNAVAILABLE, "Error", failure_description)


_SERVICE_ERRORS = (
    ProfileNotFoundError,
    IncompleteProfileError,
    MatchNotFoundError,
    MatchConflictError,
    MatchActionError,
    StoreError,
)


# ──────────────────────────────────────────────────────────────────────────────
# GET /potential/{user_id} — All candidates above the threshold
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/potential/{user_id}",
    response_model=list[ScoredCandidate],
    summary="List scored potential matches",
)
async def potential_matches(
    user_id: uuid.UUID,
    service: MatchingService = Depends(_get_matching_service),
) -> list[ScoredCandidate]:
    """Score every eligible user against ``user_id``.

    Already-matched users and incomplete profiles are skipped; candidates at
    or below the score threshold are hidden.  Any store failure returns an
    error and no partial list.
    """
    try:
        return await service.load_potential_matches(user_id)
    except _SERVICE_ERRORS as exc:
        raise _translate(exc, "Failed to load match data. Please try again.")


# ──────────────────────────────────────────────────────────────────────────────
# GET /top/{user_id} — Top-N shortlist
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/top/{user_id}",
    response_model=list[ScoredCandidate],
    summary="Top potential matches",
)
async def top_matches(
    user_id: uuid.UUID,
    limit: int | None = Query(None, ge=1, le=50),
    service: MatchingService = Depends(_get_matching_service),
) -> list[ScoredCandidate]:
    try:
        return await service.top_matches(user_id, limit)
    except _SERVICE_ERRORS as exc:
        raise _translate(exc, "Failed to load match data. Please try again.")


# ──────────────────────────────────────────────────────────────────────────────
# GET /details/{user_id}/{candidate_id} — Per-category breakdown
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/details/{user_id}/{candidate_id}",
    response_model=MatchDetailsResponse,
    summary="Compatibility breakdown for one candidate",
)
async def match_details(
    user_id: uuid.UUID,
    candidate_id: uuid.UUID,
    service: MatchingService = Depends(_get_matching_service),
) -> MatchDetailsResponse:
    try:
        candidate = await service.score_candidate(user_id, candidate_id)
    except _SERVICE_ERRORS as exc:
        raise _translate(exc, "Failed to load match details. Please try again.")

    return MatchDetailsResponse(
        candidate=candidate,
        categories=service.compatibility.category_breakdown(candidate.criteria),
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /list/{user_id} — Existing matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/list/{user_id}",
    response_model=list[ExistingMatchResponse],
    summary="List a user's existing matches",
)
async def existing_matches(
    user_id: uuid.UUID,
    service: MatchingService = Depends(_get_matching_service),
) -> list[dict]:
    try:
        return await service.load_existing_matches(user_id)
    except _SERVICE_ERRORS as exc:
        raise _translate(exc, "Failed to load match data. Please try again.")


# ──────────────────────────────────────────────────────────────────────────────
# POST /request/{user_id}/{candidate_id} — Request a match
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/request/{user_id}/{candidate_id}",
    response_model=MatchRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a match with a candidate",
)
async def request_match(
    user_id: uuid.UUID,
    candidate_id: uuid.UUID,
    service: MatchingService = Depends(_get_matching_service),
) -> dict:
    """Create a pending match carrying a snapshot of the current score."""
    try:
        return await service.request_match(user_id, candidate_id)
    except _SERVICE_ERRORS as exc:
        raise _translate(exc, "Failed to process your request. Please try again.")


# ──────────────────────────────────────────────────────────────────────────────
# POST /{match_id}/respond — Accept or reject
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{match_id}/respond",
    response_model=MatchRecordResponse,
    summary="Accept or reject a match request",
)
async def respond_to_match(
    match_id: uuid.UUID,
    payload: MatchRespondRequest,
    service: MatchingService = Depends(_get_matching_service),
) -> dict:
    try:
        return await service.respond_to_match(match_id, payload.user_id, payload.action)
    except _SERVICE_ERRORS as exc:
        raise _translate(exc, "Failed to process your response. Please try again.")
