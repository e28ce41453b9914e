"""
GymBuddy — Display labels for fitness attributes.

Static lookup tables shared by the compatibility reasons and by any display
surface.  Every table falls back to the capitalised raw value for unknown
keys.
"""

from __future__ import annotations

from typing import Iterable

GOAL_LABELS: dict[str, str] = {
    "bulking": "Muscle building",
    "cutting": "Fat loss",
    "maintenance": "Maintaining fitness",
    "endurance": "Improving endurance",
    "flexibility": "Increasing flexibility",
    "general": "General fitness",
}

STYLE_LABELS: dict[str, str] = {
    "cardio": "Cardio",
    "strength": "Strength Training",
    "functional": "Functional Training",
    "hiit": "HIIT",
    "yoga": "Yoga",
    "pilates": "Pilates",
    "calisthenics": "Calisthenics",
    "crossfit": "CrossFit",
    "swimming": "Swimming",
    "running": "Running",
}

TIME_SLOT_LABELS: dict[str, str] = {
    "early_morning": "Early Morning (5am-8am)",
    "morning": "Morning (8am-11am)",
    "midday": "Midday (11am-2pm)",
    "afternoon": "Afternoon (2pm-5pm)",
    "evening": "Evening (5pm-8pm)",
    "late_evening": "Late Evening (8pm-11pm)",
}

DAY_LABELS: dict[str, str] = {
    "mon": "Monday",
    "tue": "Tuesday",
    "wed": "Wednesday",
    "thu": "Thursday",
    "fri": "Friday",
    "sat": "Saturday",
    "sun": "Sunday",
}


def _capitalize(value: str) -> str:
    # str.capitalize() would lower-case the tail
    return value[:1].upper() + value[1:]


def format_goal(goal: str) -> str:
    return GOAL_LABELS.get(goal) or _capitalize(goal)


def format_style(style: str) -> str:
    return STYLE_LABELS.get(style) or _capitalize(style)


def format_time_slots(slots: Iterable[str]) -> list[str]:
    return [TIME_SLOT_LABELS.get(slot) or _capitalize(slot) for slot in slots]


def format_days(days: Iterable[str]) -> list[str]:
    return [DAY_LABELS.get(day) or _capitalize(day) for day in days]
