"""
GymBuddy — Shared API dependencies.

Provides the request-scoped row store and the notification-style error
helper every router uses to surface failures to the client.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from gymbuddy.config import get_settings
from gymbuddy.database import get_db
from gymbuddy.services.compatibility_service import CompatibilityService
from gymbuddy.services.store import InMemoryRowStore, RowStore, SqlAlchemyRowStore, get_change_feed

logger = structlog.get_logger("gymbuddy.api.dependencies")

# ── Singletons ────────────────────────────────────────────────────────────────

_memory_store: InMemoryRowStore | None = None
_compatibility_service: CompatibilityService | None = None


def get_compatibility_service() -> CompatibilityService:
    global _compatibility_service
    if _compatibility_service is None:
        _compatibility_service = CompatibilityService()
    return _compatibility_service


async def get_store(db: AsyncSession = Depends(get_db)) -> RowStore:
    """Return the row store for this request.

    ``STORE_BACKEND=memory`` shares one process-local store across requests;
    otherwise the store wraps the request's database session.
    """
    global _memory_store
    if get_settings().STORE_BACKEND == "memory":
        if _memory_store is None:
            _memory_store = InMemoryRowStore(get_change_feed())
            logger.info("memory_store_initialised")
        return _memory_store
    return SqlAlchemyRowStore(db, get_change_feed())


# ── Notifications ─────────────────────────────────────────────────────────────

def notify(
    status_code: int,
    title: str,
    description: str,
    variant: str = "destructive",
) -> HTTPException:
    """Build an ``HTTPException`` whose detail is a client notification.

    Usage::

        raise notify(404, "Not Found", "Profile not found.")
    """
    return HTTPException(
        status_code=status_code,
        detail={"title": title, "description": description, "variant": variant},
    )
