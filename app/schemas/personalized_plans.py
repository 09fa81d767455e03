"""Personalized plan (per-day row) schemas."""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PersonalizedPlanOut(BaseModel):
    """Một ngày trong plan (personalized_plans row)."""

    id: UUID
    user_id: UUID
    plan_type: str
    date: date
    focus: Optional[str] = None
    workout_content: Optional[Dict[str, Any]] = None
    nutrition_guidance: Optional[Dict[str, Any]] = None
    is_active: bool
    is_completed: bool
    generation_job_id: Optional[UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PersonalizedPlanListResponse(BaseModel):
    """GET /api/personalized-plans."""

    plans: List[PersonalizedPlanOut]
    count: int


class PlanCompletionRequest(BaseModel):
    """Body cho PATCH /api/personalized-plans/{plan_id}."""

    user_id: UUID = Field(..., description="Owner UUID")
    completed: bool = Field(..., description="Đánh dấu đã tập xong")


class PlanDeleteResponse(BaseModel):
    """Response cho DELETE."""

    success: bool = True
    deleted: int
