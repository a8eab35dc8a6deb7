"""create user profiles table

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("occupation", sa.String(length=200), nullable=True),
        sa.Column("living_arrangement", sa.String(length=32), nullable=True),
        sa.Column("family_status", sa.String(length=32), nullable=True),
        sa.Column("wake_up_time", sa.String(length=5), nullable=True),
        sa.Column("sleep_time", sa.String(length=5), nullable=True),
        sa.Column("work_hours", sa.Text(), nullable=True),
        sa.Column("diet_preference", sa.String(length=32), nullable=True),
        sa.Column("hobbies", sa.Text(), nullable=True),
        sa.Column("sports_activities", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("health_goal", sa.Text(), nullable=True),
        sa.Column("career_goal", sa.Text(), nullable=True),
        sa.Column("personal_goal", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_user_profiles_user_id", "user_profiles", ["user_id"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_user_profiles_user_id", table_name="user_profiles")
    op.drop_table("user_profiles")
