"""Plan generation job: lifecycle row polled by clients."""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class PlanGenerationJob(Base):
    """
    One plan generation run for a user.
    status: queued -> checking_profile -> checking_previous_workouts -> creating_plan -> complete | failed.
    request_payload: { "start_date": "YYYY-MM-DD", "schedule": [ { "day": "Monday", "focus": "Push" }, ... ] }.
    progress_data: { current_day, total_days, current_week, total_weeks, current_focus }.
    result_payload (complete) và error_message (failed) không bao giờ cùng được set.
    """

    __tablename__ = "plan_generation_jobs"
    __table_args__ = (
        Index("ix_plan_generation_jobs_user_status", "user_id", "status"),
        CheckConstraint(
            "NOT (result_payload IS NOT NULL AND error_message IS NOT NULL)",
            name="ck_plan_generation_jobs_result_xor_error",
        ),
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
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="queued")
    request_payload: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False)
    progress_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    result_payload: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="plan_generation_jobs")
