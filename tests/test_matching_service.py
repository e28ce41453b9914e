"""Tests for MatchingService: candidate filtering and the match lifecycle."""
import uuid
from unittest.mock import AsyncMock

import pytest

from gymbuddy.services.matching_service import (
    IncompleteProfileError,
    MatchActionError,
    MatchConflictError,
    MatchNotFoundError,
    MatchingService,
)
from gymbuddy.services.profile_service import ProfileNotFoundError
from gymbuddy.services.store import StoreError


@pytest.fixture
def service(store):
    return MatchingService(store)


@pytest.fixture
def austin_other(make_fitness_row):
    """0.6 against the default row."""
    return make_fitness_row(
        fitness_style=["strength", "yoga"],
        preferred_time_slots=["morning"],
        availability_days=["mon", "fri"],
    )


@pytest.fixture
def level_only(make_fitness_row):
    """0.04 against the default row."""
    return make_fitness_row(
        fitness_goal="bulking",
        fitness_style=["yoga"],
        preferred_time_slots=["late_evening"],
        availability_days=["sun"],
        location="Denver, CO",
    )


class TestLoadPotentialMatches:

    @pytest.mark.asyncio
    async def test_scores_and_sorts_candidates(
        self, service, create_user, make_fitness_row, austin_other
    ):
        me = await create_user("me", make_fitness_row())
        buddy = await create_user("buddy", austin_other)
        twin = await create_user("twin", make_fitness_row())

        candidates = await service.load_potential_matches(me)

        assert [c.user_id for c in candidates] == [twin, buddy]
        # 3 + 6 + 4 + 2 + 1 + 6 = 22
        assert candidates[0].compatibility_score == 0.88
        assert candidates[1].compatibility_score == 0.6
        assert len(candidates[1].match_reasons) == 6
        assert candidates[1].profile.username == "buddy"
        assert candidates[1].fitness_profile.fitness_style == ["strength", "yoga"]

    @pytest.mark.asyncio
    async def test_low_scores_dropped(self, service, create_user, make_fitness_row, level_only):
        me = await create_user("me", make_fitness_row())
        await create_user("stranger", level_only)
        assert await service.load_potential_matches(me) == []

    @pytest.mark.asyncio
    async def test_score_equal_to_threshold_dropped(
        self, service, create_user, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        # goal 3 + style 3 + location 2 = 8 -> 0.32
        await create_user("edge", make_fitness_row(
            fitness_level="advanced",
            fitness_style=["strength"],
            preferred_time_slots=["midday"],
            availability_days=["sun"],
        ))

        assert len(await service.load_potential_matches(me)) == 1
        service.threshold = 0.32
        assert await service.load_potential_matches(me) == []

    @pytest.mark.asyncio
    async def test_excludes_self(self, service, create_user, make_fitness_row):
        me = await create_user("me", make_fitness_row())
        assert await service.load_potential_matches(me) == []

    @pytest.mark.asyncio
    async def test_excludes_existing_matches_both_directions(
        self, service, create_user, create_match, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        requested = await create_user("requested", make_fitness_row())
        requester = await create_user("requester", make_fitness_row())
        rejected = await create_user("rejected", make_fitness_row())
        free = await create_user("free", make_fitness_row())

        await create_match(me, requested, status="pending")
        await create_match(requester, me, status="accepted")
        await create_match(me, rejected, status="rejected")

        candidates = await service.load_potential_matches(me)
        assert [c.user_id for c in candidates] == [free]

    @pytest.mark.asyncio
    async def test_skips_incomplete_candidates(
        self, service, create_user, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        await create_user("no_fitness")
        await create_user("no_styles", make_fitness_row(fitness_style=[]))
        await create_user("no_goal", make_fitness_row(fitness_goal=None))
        await create_user("no_level", make_fitness_row(fitness_level=None))

        assert await service.load_potential_matches(me) == []

    @pytest.mark.asyncio
    async def test_own_profile_missing(self, service):
        with pytest.raises(ProfileNotFoundError):
            await service.load_potential_matches(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_own_fitness_incomplete(self, service, create_user, make_fitness_row):
        no_fitness = await create_user("no_fitness")
        no_styles = await create_user("no_styles", make_fitness_row(fitness_style=[]))

        with pytest.raises(IncompleteProfileError):
            await service.load_potential_matches(no_fitness)
        with pytest.raises(IncompleteProfileError):
            await service.load_potential_matches(no_styles)

    @pytest.mark.asyncio
    async def test_store_failure_aborts_pass(
        self, service, store, create_user, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        await create_user("buddy", make_fitness_row())

        original_list = store.list

        async def failing_list(table, filters=None):
            if table == "matches":
                raise StoreError("connection lost")
            return await original_list(table, filters)

        store.list = AsyncMock(side_effect=failing_list)
        with pytest.raises(StoreError):
            await service.load_potential_matches(me)

    @pytest.mark.asyncio
    async def test_candidate_lists_keep_stored_order(
        self, service, create_user, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        await create_user("buddy", make_fitness_row(
            fitness_style=["yoga", "strength", "hiit"],
            preferred_time_slots=["evening", "morning"],
            availability_days=["sun", "mon", "wed", "fri"],
        ))

        [candidate] = await service.load_potential_matches(me)
        dumped = candidate.model_dump(mode="json")["fitness_profile"]

        assert dumped["fitness_style"] == ["yoga", "strength", "hiit"]
        assert dumped["preferred_time_slots"] == ["evening", "morning"]
        assert dumped["availability_days"] == ["sun", "mon", "wed", "fri"]
        assert dumped["is_complete"] is True


class TestTopMatches:

    @pytest.mark.asyncio
    async def test_limits_to_three_by_default(self, service, create_user, make_fitness_row):
        me = await create_user("me", make_fitness_row())
        for i in range(5):
            await create_user(f"buddy{i}", make_fitness_row())

        assert len(await service.top_matches(me)) == 3
        assert len(await service.top_matches(me, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_fewer_candidates_than_limit(
        self, service, create_user, make_fitness_row, austin_other
    ):
        me = await create_user("me", make_fitness_row())
        await create_user("buddy", austin_other)
        assert len(await service.top_matches(me)) == 1


class TestScoreCandidate:

    @pytest.mark.asyncio
    async def test_bypasses_threshold(self, service, create_user, make_fitness_row, level_only):
        me = await create_user("me", make_fitness_row())
        stranger = await create_user("stranger", level_only)

        candidate = await service.score_candidate(me, stranger)
        assert candidate.compatibility_score == 0.04
        assert [c.criterion for c in candidate.criteria if c.triggered] == ["level"]

    @pytest.mark.asyncio
    async def test_unknown_candidate(self, service, create_user, make_fitness_row):
        me = await create_user("me", make_fitness_row())
        with pytest.raises(ProfileNotFoundError):
            await service.score_candidate(me, uuid.uuid4())


class TestRequestMatch:

    @pytest.mark.asyncio
    async def test_creates_pending_with_snapshot(
        self, service, store, create_user, make_fitness_row, austin_other
    ):
        me = await create_user("me", make_fitness_row())
        buddy = await create_user("buddy", austin_other)

        match = await service.request_match(me, buddy)

        assert match["status"] == "pending"
        assert match["user1_id"] == me
        assert match["user2_id"] == buddy
        assert match["compatibility_score"] == 0.6

    @pytest.mark.asyncio
    async def test_snapshot_not_recomputed(
        self, service, store, create_user, make_fitness_row, austin_other
    ):
        me = await create_user("me", make_fitness_row())
        buddy = await create_user("buddy", austin_other)
        match = await service.request_match(me, buddy)

        await store.update("fitness_profiles", buddy, {"fitness_goal": "bulking"})

        [existing] = await service.load_existing_matches(me)
        assert existing["compatibility_score"] == 0.6
        assert existing["id"] == match["id"]

    @pytest.mark.asyncio
    async def test_conflict_in_either_direction(
        self, service, create_user, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        buddy = await create_user("buddy", make_fitness_row())
        await service.request_match(me, buddy)

        with pytest.raises(MatchConflictError):
            await service.request_match(me, buddy)
        with pytest.raises(MatchConflictError):
            await service.request_match(buddy, me)

    @pytest.mark.asyncio
    async def test_cannot_request_self(self, service, create_user, make_fitness_row):
        me = await create_user("me", make_fitness_row())
        with pytest.raises(MatchActionError):
            await service.request_match(me, me)

    @pytest.mark.asyncio
    async def test_candidate_incomplete(self, service, create_user, make_fitness_row):
        me = await create_user("me", make_fitness_row())
        empty = await create_user("empty")
        with pytest.raises(IncompleteProfileError):
            await service.request_match(me, empty)


class TestRespondToMatch:

    @pytest.mark.asyncio
    async def test_recipient_accepts(self, service, create_user, create_match):
        me = await create_user("me")
        buddy = await create_user("buddy")
        match = await create_match(me, buddy, status="pending")

        updated = await service.respond_to_match(match["id"], buddy, "accept")
        assert updated["status"] == "accepted"

    @pytest.mark.asyncio
    async def test_recipient_rejects(self, service, create_user, create_match):
        me = await create_user("me")
        buddy = await create_user("buddy")
        match = await create_match(me, buddy, status="pending")

        updated = await service.respond_to_match(match["id"], buddy, "reject")
        assert updated["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_requester_cannot_respond(self, service, create_user, create_match):
        me = await create_user("me")
        buddy = await create_user("buddy")
        match = await create_match(me, buddy, status="pending")

        with pytest.raises(MatchActionError):
            await service.respond_to_match(match["id"], me, "accept")

    @pytest.mark.asyncio
    async def test_only_pending_can_change(self, service, create_user, create_match):
        me = await create_user("me")
        buddy = await create_user("buddy")
        match = await create_match(me, buddy, status="rejected")

        with pytest.raises(MatchActionError):
            await service.respond_to_match(match["id"], buddy, "accept")

    @pytest.mark.asyncio
    async def test_unknown_action(self, service, create_user, create_match):
        me = await create_user("me")
        buddy = await create_user("buddy")
        match = await create_match(me, buddy, status="pending")

        with pytest.raises(MatchActionError):
            await service.respond_to_match(match["id"], buddy, "maybe")

    @pytest.mark.asyncio
    async def test_missing_match(self, service):
        with pytest.raises(MatchNotFoundError):
            await service.respond_to_match(uuid.uuid4(), uuid.uuid4(), "accept")


class TestLoadExistingMatches:

    @pytest.mark.asyncio
    async def test_enriches_with_other_user(
        self, service, create_user, create_match, make_fitness_row
    ):
        me = await create_user("me", make_fitness_row())
        buddy = await create_user("buddy", make_fitness_row(fitness_style=[]))
        ghost = await create_user("ghost")
        await create_match(buddy, me, status="accepted")
        await create_match(me, ghost, status="pending")

        matches = {m["other_user"]["username"]: m for m in await service.load_existing_matches(me)}

        assert set(matches) == {"buddy", "ghost"}
        assert matches["buddy"]["other_user_fitness_profile"]["is_complete"] is False
        assert matches["ghost"]["other_user_fitness_profile"] is None

    @pytest.mark.asyncio
    async def test_no_matches(self, service, create_user):
        me = await create_user("me")
        assert await service.load_existing_matches(me) == []
