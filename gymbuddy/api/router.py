"""
GymBuddy — Main API Router

Aggregates all sub-routers under a single prefix so that ``gymbuddy.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from gymbuddy.api import dashboard, matching, messages, profiles, workouts

router = APIRouter()

router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
router.include_router(profiles.labels_router, prefix="/fitness", tags=["Profiles"])
router.include_router(matching.router, prefix="/match", tags=["Matching"])
router.include_router(messages.router, prefix="/messages", tags=["Messages"])
router.include_router(workouts.router, prefix="/workouts", tags=["Workouts"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
