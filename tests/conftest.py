"""Shared pytest fixtures for GymBuddy tests."""
import uuid

import pytest

from gymbuddy.schemas.fitness_profile import FitnessAttributes
from gymbuddy.services.store import ChangeFeed, InMemoryRowStore


def _base_fitness_row():
    """The "self" profile from the Austin worked example."""
    return {
        "fitness_level": "intermediate",
        "fitness_goal": "cutting",
        "fitness_style": ["strength", "hiit"],
        "preferred_time_slots": ["morning", "evening"],
        "availability_days": ["mon", "wed", "fri"],
        "location": "Austin, TX",
        "gym_name": None,
    }


@pytest.fixture
def make_fitness_row():
    """Factory for ``fitness_profiles`` rows; keyword overrides replace fields."""
    def _make(**overrides):
        row = _base_fitness_row()
        row.update(overrides)
        return row
    return _make


@pytest.fixture
def make_attrs(make_fitness_row):
    """Factory for ``FitnessAttributes`` built from an overridden base row."""
    def _make(**overrides):
        return FitnessAttributes.from_row(make_fitness_row(**overrides))
    return _make


@pytest.fixture
def self_attrs(make_attrs):
    return make_attrs()


@pytest.fixture
def other_attrs(make_attrs):
    """The "other" profile from the Austin worked example."""
    return make_attrs(
        fitness_style=["strength", "yoga"],
        preferred_time_slots=["morning"],
        availability_days=["mon", "fri"],
    )


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def store(feed):
    return InMemoryRowStore(feed)


@pytest.fixture
def create_user(store):
    """Insert a profile (and optionally a fitness profile); returns the id."""
    async def _create(username, fitness=None):
        profile = await store.insert("profiles", {
            "id": uuid.uuid4(),
            "username": username,
            "full_name": username.title(),
            "avatar_url": None,
            "bio": None,
        })
        if fitness is not None:
            await store.insert("fitness_profiles", {"id": profile["id"], **fitness})
        return profile["id"]
    return _create


@pytest.fixture
def create_match(store):
    """Insert a match record directly; returns the stored row."""
    async def _create(user1_id, user2_id, status="accepted", score=0.6):
        return await store.insert("matches", {
            "id": uuid.uuid4(),
            "user1_id": user1_id,
            "user2_id": user2_id,
            "status": status,
            "compatibility_score": score,
        })
    return _create
