"""
GymBuddy — Profile and fitness-profile management.

Profiles are the public identity; fitness profiles hold the training
attributes the compatibility scorer consumes.  Both are owned by a single
user, and a fitness profile shares its id with the owning profile.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from gymbuddy.services.store import RowStore

logger = structlog.get_logger("gymbuddy.profile_service")


class ProfileNotFoundError(LookupError):
    def __init__(self, user_id: Any) -> None:
        super().__init__(f"Profile {user_id} not found.")
        self.user_id = user_id


class ProfileConflictError(ValueError):
    """Username already taken."""


def is_complete(fitness_row: dict | None) -> bool:
    """A fitness profile can be scored once level, goal and at least one
    training style are set."""
    if not fitness_row:
        return False
    return bool(
        fitness_row.get("fitness_level")
        and fitness_row.get("fitness_goal")
        and fitness_row.get("fitness_style")
    )


class ProfileService:
    """CRUD over the ``profiles`` and ``fitness_profiles`` tables."""

    def __init__(self, store: RowStore) -> None:
        self.store = store

    # ── Profiles ────────────────────────────────────────────────────

    async def create_profile(self, data: dict, user_id: uuid.UUID | None = None) -> dict:
        log = logger.bind(username=data.get("username"))
        log.info("create_profile_start")

        await self._ensure_username_free(data["username"])

        row = {"id": user_id or uuid.uuid4(), **data}
        created = await self.store.insert("profiles", row)

        log.info("create_profile_complete", user_id=str(created["id"]))
        return created

    async def get_profile(self, user_id: uuid.UUID) -> dict:
        row = await self.store.get_by_id("profiles", user_id)
        if row is None:
            logger.warning("get_profile_not_found", user_id=str(user_id))
            raise ProfileNotFoundError(user_id)
        return row

    async def update_profile(self, user_id: uuid.UUID, patch: dict) -> dict:
        log = logger.bind(user_id=str(user_id))
        current = await self.get_profile(user_id)

        username = patch.get("username")
        if username and username != current["username"]:
            await self._ensure_username_free(username)

        updated = await self.store.update("profiles", user_id, patch)
        log.info("update_profile_complete", updated_fields=list(patch.keys()))
        return updated

    # ── Fitness profiles ────────────────────────────────────────────

    async def get_fitness_profile(self, user_id: uuid.UUID) -> dict | None:
        return await self.store.get_by_id("fitness_profiles", user_id)

    async def upsert_fitness_profile(self, user_id: uuid.UUID, data: dict) -> dict:
        """Create the user's fitness profile or overwrite the existing one.

        No history is kept; match records created earlier keep their own
        score snapshot.
        """
        log = logger.bind(user_id=str(user_id))
        await self.get_profile(user_id)

        existing = await self.store.get_by_id("fitness_profiles", user_id)
        if existing is None:
            row = await self.store.insert("fitness_profiles", {"id": user_id, **data})
            log.info("fitness_profile_created", complete=is_complete(row))
        else:
            row = await self.store.update("fitness_profiles", user_id, data)
            log.info("fitness_profile_updated", complete=is_complete(row))
        return row

    # ── Internal helpers ────────────────────────────────────────────

    async def _ensure_username_free(self, username: str) -> None:
        taken = await self.store.list("profiles", {"username": username})
        if taken:
            logger.warning("username_taken", username=username)
            raise ProfileConflictError(f"Username {username!r} is already taken.")
