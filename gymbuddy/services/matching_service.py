"""
GymBuddy — Match-list loading and match lifecycle.

A match-list load runs as one pass:
  1. Fetch the user's profile and fitness profile.
  2. Fetch every other profile, fitness profile, and the user's matches.
  3. Drop users already in a match with the user (either direction).
  4. Drop users whose fitness profile is incomplete.
  5. Score the rest, keep scores above ``MATCH_SCORE_THRESHOLD``, sort.

A store failure anywhere aborts the pass: callers get the exception and no
partial list.

Match lifecycle: the requester inserts a ``pending`` record carrying a score
snapshot; the recipient moves it to ``accepted`` or ``rejected``.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog

from gymbuddy.config import get_settings
from gymbuddy.schemas.fitness_profile import FitnessAttributes, FitnessProfileResponse
from gymbuddy.schemas.match import ScoredCandidate
from gymbuddy.schemas.profile import ProfileResponse
from gymbuddy.services.compatibility_service import CompatibilityService
from gymbuddy.services.profile_service import ProfileNotFoundError, is_complete
from gymbuddy.services.store import RowStore

logger = structlog.get_logger("gymbuddy.matching_service")

_ACTION_TO_STATUS: dict[str, str] = {
    "accept": "accepted",
    "reject": "rejected",
}


class IncompleteProfileError(ValueError):
    """The user's own fitness profile is missing or cannot be scored."""

    def __init__(self, user_id: Any) -> None:
        super().__init__(f"Fitness profile for {user_id} is missing or incomplete.")
        self.user_id = user_id


class MatchConflictError(ValueError):
    """A match record already exists between the two users."""


class MatchActionError(ValueError):
    """The requested accept/reject is not allowed."""


class MatchNotFoundError(LookupError):
    pass


class MatchingService:
    """Candidate discovery and match state transitions over a row store.

    The scorer is injected so tests (and alternative weightings) can swap
    it; it defaults to the standard :class:`CompatibilityService`.
    """

    def __init__(
        self,
        store: RowStore,
        compatibility_service: CompatibilityService | None = None,
    ) -> None:
        self.store = store
        self.compatibility = compatibility_service or CompatibilityService()

        settings = get_settings()
        self.threshold: float = settings.MATCH_SCORE_THRESHOLD
        self.top_limit: int = settings.TOP_MATCHES_LIMIT

    # ── Public API ────────────────────────────────────────────────────

    async def load_potential_matches(self, user_id: uuid.UUID) -> list[ScoredCandidate]:
        """Score every eligible candidate for ``user_id``.

        Returns candidates scoring strictly above the threshold, highest
        first.
        """
        log = logger.bind(user_id=str(user_id))
        log.info("load_potential_matches_start")

        own_attrs = await self._require_own_attributes(user_id)

        profiles = [
            p for p in await self.store.list("profiles")
            if str(p["id"]) != str(user_id)
        ]
        fitness_by_id = {
            str(fp["id"]): fp
            for fp in await self.store.list("fitness_profiles")
            if str(fp["id"]) != str(user_id)
        }
        user_matches = await self._matches_for_user(user_id)

        matched_ids = {
            str(uid)
            for m in user_matches
            for uid in (m["user1_id"], m["user2_id"])
        }

        scored: list[ScoredCandidate] = []
        skipped_incomplete = 0

        for profile in profiles:
            candidate_id = str(profile["id"])
            if candidate_id in matched_ids:
                continue

            fitness_row = fitness_by_id.get(candidate_id)
            if not is_complete(fitness_row):
                skipped_incomplete += 1
                continue

            scored.append(self._score_candidate(own_attrs, profile, fitness_row))

        kept = [c for c in scored if c.compatibility_score > self.threshold]
        kept.sort(key=lambda c: c.compatibility_score, reverse=True)

        log.info(
            "load_potential_matches_complete",
            total_profiles=len(profiles),
            fitness_profiles=len(fitness_by_id),
            existing_matches=len(user_matches),
            skipped_incomplete=skipped_incomplete,
            scored=len(scored),
            kept=len(kept),
        )
        return kept

    async def top_matches(
        self, user_id: uuid.UUID, limit: int | None = None
    ) -> list[ScoredCandidate]:
        candidates = await self.load_potential_matches(user_id)
        return self.compatibility.rank(candidates, limit if limit is not None else self.top_limit)

    async def score_candidate(
        self, user_id: uuid.UUID, candidate_id: uuid.UUID
    ) -> ScoredCandidate:
        """Score one specific candidate, bypassing the threshold filter."""
        own_attrs = await self._require_own_attributes(user_id)

        profile = await self.store.get_by_id("profiles", candidate_id)
        if profile is None:
            raise ProfileNotFoundError(candidate_id)
        fitness_row = await self.store.get_by_id("fitness_profiles", candidate_id)
        if not is_complete(fitness_row):
            raise IncompleteProfileError(candidate_id)

        return self._score_candidate(own_attrs, profile, fitness_row)

    async def load_existing_matches(self, user_id: uuid.UUID) -> list[dict]:
        """Return the user's match records, each enriched with the other
        user's profile and fitness profile (``None`` when missing)."""
        log = logger.bind(user_id=str(user_id))

        enriched: list[dict] = []
        for match in await self._matches_for_user(user_id):
            other_id = (
                match["user2_id"] if str(match["user1_id"]) == str(user_id)
                else match["user1_id"]
            )
            other_profile = await self.store.get_by_id("profiles", other_id)
            other_fitness = await self.store.get_by_id("fitness_profiles", other_id)
            if other_fitness is not None:
                other_fitness = {**other_fitness, "is_complete": is_complete(other_fitness)}

            enriched.append({
                **match,
                "other_user": other_profile,
                "other_user_fitness_profile": other_fitness,
            })

        log.info("load_existing_matches_complete", count=len(enriched))
        return enriched

    async def request_match(self, user_id: uuid.UUID, candidate_id: uuid.UUID) -> dict:
        """Create a ``pending`` match from ``user_id`` to ``candidate_id``.

        The compatibility score is computed now and stored as a snapshot.
        """
        log = logger.bind(user_id=str(user_id), candidate_id=str(candidate_id))
        log.info("request_match_start")

        if str(user_id) == str(candidate_id):
            raise MatchActionError("Cannot request a match with yourself.")

        existing = await self.find_match_between(user_id, candidate_id)
        if existing is not None:
            log.warning("request_match_conflict", match_id=str(existing["id"]))
            raise MatchConflictError(
                f"A match between {user_id} and {candidate_id} already exists."
            )

        candidate = await self.score_candidate(user_id, candidate_id)

        match = await self.store.insert("matches", {
            "id": uuid.uuid4(),
            "user1_id": user_id,
            "user2_id": candidate_id,
            "status": "pending",
            "compatibility_score": candidate.compatibility_score,
        })

        log.info(
            "request_match_complete",
            match_id=str(match["id"]),
            compatibility_score=candidate.compatibility_score,
        )
        return match

    async def respond_to_match(
        self, match_id: uuid.UUID, user_id: uuid.UUID, action: str
    ) -> dict:
        """Accept or reject a pending match on behalf of its recipient."""
        log = logger.bind(match_id=str(match_id), user_id=str(user_id), action=action)

        new_status = _ACTION_TO_STATUS.get(action)
        if new_status is None:
            raise MatchActionError(f"Unknown action {action!r}.")

        match = await self.store.get_by_id("matches", match_id)
        if match is None:
            raise MatchNotFoundError(f"Match {match_id} not found.")

        if str(match["user2_id"]) != str(user_id):
            log.warning("respond_to_match_not_recipient")
            raise MatchActionError("Only the recipient can respond to a match request.")

        if match["status"] != "pending":
            log.warning("respond_to_match_not_pending", status=match["status"])
            raise MatchActionError(f"Match is already {match['status']}.")

        updated = await self.store.update("matches", match_id, {"status": new_status})
        log.info("respond_to_match_complete", status=new_status)
        return updated

    async def find_match_between(
        self, user_a: uuid.UUID, user_b: uuid.UUID
    ) -> dict | None:
        for filters in (
            {"user1_id": user_a, "user2_id": user_b},
            {"user1_id": user_b, "user2_id": user_a},
        ):
            rows = await self.store.list("matches", filters)
            if rows:
                return rows[0]
        return None

    # ── Internal helpers ──────────────────────────────────────────────

    async def _require_own_attributes(self, user_id: uuid.UUID) -> FitnessAttributes:
        profile = await self.store.get_by_id("profiles", user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)

        fitness_row = await self.store.get_by_id("fitness_profiles", user_id)
        if not is_complete(fitness_row):
            logger.info("own_fitness_profile_incomplete", user_id=str(user_id))
            raise IncompleteProfileError(user_id)

        return FitnessAttributes.from_row(fitness_row)

    async def _matches_for_user(self, user_id: uuid.UUID) -> list[dict]:
        as_requester = await self.store.list("matches", {"user1_id": user_id})
        as_recipient = await self.store.list("matches", {"user2_id": user_id})

        seen: set[str] = set()
        matches: list[dict] = []
        for match in as_requester + as_recipient:
            if str(match["id"]) not in seen:
                seen.add(str(match["id"]))
                matches.append(match)
        return matches

    def _score_candidate(
        self,
        own_attrs: FitnessAttributes,
        profile: dict,
        fitness_row: dict,
    ) -> ScoredCandidate:
        other_attrs = FitnessAttributes.from_row(fitness_row)
        breakdown = self.compatibility.evaluate(own_attrs, other_attrs)
        return ScoredCandidate(
            user_id=profile["id"],
            profile=ProfileResponse.model_validate(profile),
            fitness_profile=FitnessProfileResponse.model_validate(
                {**fitness_row, "is_complete": is_complete(fitness_row)}
            ),
            compatibility_score=breakdown.score,
            match_reasons=breakdown.reasons,
            criteria=list(breakdown.criteria),
        )
