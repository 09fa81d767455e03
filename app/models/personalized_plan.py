"""Personalized plan day: one row per (user_id, date, plan_type)."""
import uuid
import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base

PLAN_TYPE_WORKOUT = "workout"


class PersonalizedPlan(Base):
    """
    Kế hoạch cho một ngày. Ghi bằng upsert trên (user_id, date, plan_type) nên sinh lại không tạo trùng.
    workout_content: exercises, warmup/cooldown, cardio (không chứa date/dayName/macros).
    nutrition_guidance: { calories, protein_g, carbs_g, fat_g, notes? } - chỉ macro, không có món ăn.
    """

    __tablename__ = "personalized_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "date", "plan_type", name="uq_personalized_plans_user_date_type"),
        Index("ix_personalized_plans_generation_job_id", "generation_job_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    profile_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_fitness_profile.id", ondelete="SET NULL"),
        nullable=True,
    )
    generation_job_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("plan_generation_jobs.id", ondelete="SET NULL"),
        nullable=True,
    )
    plan_type: Mapped[str] = mapped_column(String(32), nullable=False, default=PLAN_TYPE_WORKOUT)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    focus: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    workout_content: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    nutrition_guidance: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="personalized_plans")
