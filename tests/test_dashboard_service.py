from datetime import datetime, timedelta, timezone

import pytest

from gymbuddy.services.dashboard_service import DashboardService
from gymbuddy.services.messaging_service import MessagingService
from gymbuddy.services.workout_service import WorkoutService

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_summary(store, create_user, create_match):
    me = await create_user("me")
    buddies = [await create_user(f"buddy{i}") for i in range(4)]

    accepted = await create_match(me, buddies[0], status="accepted")
    await create_match(buddies[1], me, status="accepted")
    await create_match(buddies[2], me, status="pending")
    await create_match(me, buddies[3], status="rejected")

    workouts = WorkoutService(store)
    for days in (4, 1, 3, 2):
        await workouts.schedule_workout(
            accepted["id"], me, NOW + timedelta(days=days), 60, "Gym"
        )

    messaging = MessagingService(store)
    for i in range(7):
        await messaging.send_message(accepted["id"], buddies[0], f"msg {i}")

    summary = await DashboardService(store).summary(me, now=NOW)

    assert summary["matches"] == {"pending": 1, "accepted": 2}
    assert [w["scheduled_at"] for w in summary["upcoming_workouts"]] == [
        NOW + timedelta(days=1),
        NOW + timedelta(days=2),
        NOW + timedelta(days=3),
    ]
    assert len(summary["recent_messages"]) == 5
    assert summary["recent_messages"][0]["message"] == "msg 6"


@pytest.mark.asyncio
async def test_summary_empty(store, create_user):
    me = await create_user("me")
    summary = await DashboardService(store).summary(me, now=NOW)
    assert summary == {
        "matches": {"pending": 0, "accepted": 0},
        "upcoming_workouts": [],
        "recent_messages": [],
    }
