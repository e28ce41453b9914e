"""
GymBuddy — FitnessProfile model (training attributes used for scoring).

The primary key doubles as the owning profile's id: one fitness profile per
user.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gymbuddy.database import Base


class FitnessProfile(Base):
    __tablename__ = "fitness_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    fitness_level: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="beginner / intermediate / advanced"
    )
    fitness_goal: Mapped[str | None] = mapped_column(
        String,
        nullable=True,
        comment="bulking / cutting / maintenance / endurance / flexibility / general",
    )
    fitness_style: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, comment="Array of style tags"
    )
    preferred_time_slots: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, comment="Array of time-of-day buckets"
    )
    availability_days: Mapped[list] = mapped_column(
        JSONB, nullable=False, default=list, comment="Array of weekday tags"
    )
    location: Mapped[str] = mapped_column(String, nullable=False, default="")
    gym_name: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    profile: Mapped["Profile"] = relationship("Profile", back_populates="fitness_profile")

    def __repr__(self) -> str:
        return (
            f"<FitnessProfile user={self.id} "
            f"level={self.fitness_level!r} goal={self.fitness_goal!r}>"
        )
