"""initial: users, fitness profile, goals, workout sessions, plan jobs, personalized plans

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("height", sa.Numeric(5, 1), nullable=True),
        sa.Column("current_weight", sa.Numeric(5, 1), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "user_fitness_profile",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("fitness_level", sa.String(32), nullable=True),
        sa.Column("primary_goals", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("available_equipment", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("workout_duration", sa.Integer(), nullable=True),
        sa.Column("strength_levels", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("injuries_limitations", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_table(
        "user_goals",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("daily_calorie_goal", sa.Integer(), nullable=True),
        sa.Column("daily_protein_goal", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_table(
        "workout_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("workout_content", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_workout_sessions_user_completed", "workout_sessions", ["user_id", "completed_at"], unique=False
    )
    op.create_table(
        "plan_generation_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(32), server_default="queued", nullable=False),
        sa.Column("request_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("progress_data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("result_payload", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "NOT (result_payload IS NOT NULL AND error_message IS NOT NULL)",
            name="ck_plan_generation_jobs_result_xor_error",
        ),
    )
    op.create_index(
        "ix_plan_generation_jobs_user_status", "plan_generation_jobs", ["user_id", "status"], unique=False
    )
    op.create_table(
        "personalized_plans",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("generation_job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("plan_type", sa.String(32), server_default="workout", nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("focus", sa.String(128), nullable=True),
        sa.Column("workout_content", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("nutrition_guidance", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_completed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["profile_id"], ["user_fitness_profile.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["generation_job_id"], ["plan_generation_jobs.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", "plan_type", name="uq_personalized_plans_user_date_type"),
    )
    op.create_index(
        "ix_personalized_plans_generation_job_id", "personalized_plans", ["generation_job_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_personalized_plans_generation_job_id", table_name="personalized_plans")
    op.drop_table("personalized_plans")
    op.drop_index("ix_plan_generation_jobs_user_status", table_name="plan_generation_jobs")
    op.drop_table("plan_generation_jobs")
    op.drop_index("ix_workout_sessions_user_completed", table_name="workout_sessions")
    op.drop_table("workout_sessions")
    op.drop_table("user_goals")
    op.drop_table("user_fitness_profile")
    op.drop_table("users")
