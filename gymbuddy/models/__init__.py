"""
GymBuddy — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from gymbuddy.models.profile import Profile
from gymbuddy.models.fitness_profile import FitnessProfile
from gymbuddy.models.match import Match
from gymbuddy.models.message import Message
from gymbuddy.models.workout import Workout

__all__ = [
    "Profile",
    "FitnessProfile",
    "Match",
    "Message",
    "Workout",
]
