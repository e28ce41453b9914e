"""Seed a handful of demo profiles and fitness profiles."""
import asyncio

from gymbuddy.database import async_session_factory
from gymbuddy.services.profile_service import ProfileConflictError, ProfileService
from gymbuddy.services.store import SqlAlchemyRowStore


DEMO_PROFILES = [
    {
        "profile": {"username": "austin_lifter", "full_name": "Sam Rivera", "bio": "Early bird, heavy squats."},
        "fitness": {
            "fitness_level": "intermediate",
            "fitness_goal": "cutting",
            "fitness_style": ["strength", "hiit"],
            "preferred_time_slots": ["morning", "evening"],
            "availability_days": ["mon", "wed", "fri"],
            "location": "Austin, TX",
            "gym_name": None,
        },
    },
    {
        "profile": {"username": "yoga_runner", "full_name": "Alex Chen", "bio": "Yoga on weekdays, long runs on Sunday."},
        "fitness": {
            "fitness_level": "intermediate",
            "fitness_goal": "cutting",
            "fitness_style": ["strength", "yoga"],
            "preferred_time_slots": ["morning"],
            "availability_days": ["mon", "fri"],
            "location": "Austin, TX",
            "gym_name": None,
        },
    },
    {
        "profile": {"username": "crossfit_jo", "full_name": "Jo Patel", "bio": "WODs and Olympic lifts."},
        "fitness": {
            "fitness_level": "advanced",
            "fitness_goal": "bulking",
            "fitness_style": ["crossfit", "strength", "functional"],
            "preferred_time_slots": ["early_morning", "late_evening"],
            "availability_days": ["tue", "thu", "sat"],
            "location": "Denver, CO",
            "gym_name": "Mile High CrossFit",
        },
    },
    {
        "profile": {"username": "swim_kai", "full_name": "Kai Nakamura", "bio": "Masters swim team."},
        "fitness": {
            "fitness_level": "beginner",
            "fitness_goal": "endurance",
            "fitness_style": ["swimming", "running", "cardio"],
            "preferred_time_slots": ["midday", "afternoon"],
            "availability_days": ["mon", "tue", "wed", "thu"],
            "location": "Austin, TX",
            "gym_name": None,
        },
    },
]


async def seed():
    async with async_session_factory() as session:
        service = ProfileService(SqlAlchemyRowStore(session))
        for entry in DEMO_PROFILES:
            username = entry["profile"]["username"]
            try:
                created = await service.create_profile(entry["profile"])
            except ProfileConflictError:
                print(f"  Profile {username} already exists, skipping.")
                continue
            await service.upsert_fitness_profile(created["id"], entry["fitness"])
            print(f"  Seeded profile {username} ({created['id']})")
        await session.commit()
    print("Done seeding profiles.")


if __name__ == "__main__":
    asyncio.run(seed())
