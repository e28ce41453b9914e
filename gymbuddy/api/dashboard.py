"""
GymBuddy — Dashboard API
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, status

from gymbuddy.api.dependencies import get_store, notify
from gymbuddy.schemas.dashboard import DashboardResponse
from gymbuddy.services.dashboard_service import DashboardService
from gymbuddy.services.store import RowStore, StoreError

logger = structlog.get_logger("gymbuddy.api.dashboard")

router = APIRouter()


@router.get(
    "/{user_id}",
    response_model=DashboardResponse,
    summary="Home dashboard summary",
)
async def dashboard(
    user_id: uuid.UUID,
    store: RowStore = Depends(get_store),
) -> dict:
    try:
        return await DashboardService(store).summary(user_id)
    except StoreError as exc:
        logger.error("dashboard_store_failure", user_id=str(user_id), error=str(exc))
        raise notify(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Error",
            "Failed to load your dashboard. Please try again.",
        )
