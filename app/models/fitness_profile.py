"""Fitness profile model: level, goals, equipment, strength levels, injuries."""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class UserFitnessProfile(Base):
    """
    One profile per user (questionnaire output).
    strength_levels: JSONB map exercise -> level, e.g. {"bench_press": "60kg x 8"}.
    """

    __tablename__ = "user_fitness_profile"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    fitness_level: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    primary_goals: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True)
    available_equipment: Mapped[Optional[List[str]]] = mapped_column(JSONB, nullable=True)
    workout_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    strength_levels: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    injuries_limitations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="fitness_profile")
