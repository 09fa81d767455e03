"""User model (account + body metrics)."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class User(Base):
    """Tài khoản user. Plan worker chỉ đọc height / current_weight."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    height: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 1), nullable=True)  # cm
    current_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 1), nullable=True)  # kg
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    fitness_profile = relationship("UserFitnessProfile", back_populates="user", uselist=False)
    goals = relationship("UserGoal", back_populates="user", uselist=False)
    workout_sessions = relationship("WorkoutSession", back_populates="user")
    plan_generation_jobs = relationship("PlanGenerationJob", back_populates="user")
    personalized_plans = relationship("PersonalizedPlan", back_populates="user")
