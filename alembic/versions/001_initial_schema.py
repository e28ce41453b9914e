"""Initial schema — all 5 GymBuddy tables.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # ── 1. profiles ─────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("username", sa.String, unique=True, index=True, nullable=False),
        sa.Column("full_name", sa.String, nullable=True),
        sa.Column("avatar_url", sa.String, nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        *_timestamps(),
    )

    # ── 2. fitness_profiles (1:1 with profiles, shares the id) ─────
    op.create_table(
        "fitness_profiles",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "fitness_level",
            sa.String,
            nullable=True,
            comment="beginner / intermediate / advanced",
        ),
        sa.Column(
            "fitness_goal",
            sa.String,
            nullable=True,
            comment="bulking / cutting / maintenance / endurance / flexibility / general",
        ),
        sa.Column(
            "fitness_style",
            postgresql.JSONB,
            nullable=False,
            server_default="[]",
            comment="Array of style tags",
        ),
        sa.Column(
            "preferred_time_slots",
            postgresql.JSONB,
            nullable=False,
            server_default="[]",
            comment="Array of time-of-day buckets",
        ),
        sa.Column(
            "availability_days",
            postgresql.JSONB,
            nullable=False,
            server_default="[]",
            comment="Array of weekday tags",
        ),
        sa.Column("location", sa.String, nullable=False, server_default=""),
        sa.Column("gym_name", sa.String, nullable=True),
        *_timestamps(),
    )

    # ── 3. matches ──────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user1_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user2_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.String,
            nullable=False,
            server_default="pending",
            comment="pending / accepted / rejected",
        ),
        sa.Column(
            "compatibility_score",
            sa.Float,
            nullable=True,
            comment="Snapshot taken when the match was requested",
        ),
        *_timestamps(),
        sa.UniqueConstraint("user1_id", "user2_id", name="uq_match_pair"),
    )

    # ── 4. messages ─────────────────────────────────────────────────
    op.create_table(
        "messages",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "match_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("matches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "sender_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("read", sa.Boolean, server_default="false", nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_messages_match_created",
        "messages",
        ["match_id", "created_at"],
    )

    # ── 5. workouts ─────────────────────────────────────────────────
    op.create_table(
        "workouts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "match_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("matches.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), index=True, nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("location", sa.String, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.String,
            nullable=False,
            server_default="scheduled",
            comment="scheduled / completed / cancelled",
        ),
        *_timestamps(),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("workouts")

    op.drop_index("ix_messages_match_created", table_name="messages")
    op.drop_table("messages")

    op.drop_table("matches")
    op.drop_table("fitness_profiles")
    op.drop_table("profiles")
