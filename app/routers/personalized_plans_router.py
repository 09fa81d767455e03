"""API personalized plans: liệt kê, đánh dấu hoàn thành, xóa."""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.schemas.personalized_plans import (
    PersonalizedPlanListResponse,
    PersonalizedPlanOut,
    PlanCompletionRequest,
    PlanDeleteResponse,
)
from app.services.personalized_plan_service import (
    delete_all_plans,
    delete_plan,
    list_active_plans,
    set_plan_completed,
)

router = APIRouter(prefix="/api/personalized-plans", tags=["personalized-plans"])


@router.get("", response_model=PersonalizedPlanListResponse)
async def get_plans(
    user_id: UUID = Query(..., description="User UUID"),
    plan_type: Optional[str] = Query(None, description="workout"),
    plan_date: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
) -> PersonalizedPlanListResponse:
    """Các ngày plan đang active của user (lọc theo plan_type / date)."""
    plans = await list_active_plans(db, user_id, plan_type=plan_type, plan_date=plan_date)
    return PersonalizedPlanListResponse(
        plans=[PersonalizedPlanOut.model_validate(p) for p in plans],
        count=len(plans),
    )


@router.patch("/{plan_id}", response_model=PersonalizedPlanOut)
async def patch_plan_completed(
    plan_id: UUID,
    payload: PlanCompletionRequest,
    db: AsyncSession = Depends(get_db),
) -> PersonalizedPlanOut:
    """Đánh dấu một ngày đã tập xong / chưa xong."""
    try:
        plan = await set_plan_completed(db, plan_id, payload.user_id, payload.completed)
    except ValueError as e:
        if str(e) == "plan_not_found":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
        raise
    return PersonalizedPlanOut.model_validate(plan)


@router.delete("/{plan_id}", response_model=PlanDeleteResponse)
async def delete_one_plan(
    plan_id: UUID,
    user_id: UUID = Query(..., description="Owner UUID"),
    db: AsyncSession = Depends(get_db),
) -> PlanDeleteResponse:
    """Xóa một ngày plan của user."""
    try:
        deleted = await delete_plan(db, plan_id, user_id)
    except ValueError as e:
        if str(e) == "plan_not_found":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
        raise
    return PlanDeleteResponse(deleted=deleted)


@router.delete("", response_model=PlanDeleteResponse)
async def delete_every_plan(
    user_id: UUID = Query(..., description="Owner UUID"),
    db: AsyncSession = Depends(get_db),
) -> PlanDeleteResponse:
    """Xóa toàn bộ plan của user."""
    deleted = await delete_all_plans(db, user_id)
    return PlanDeleteResponse(deleted=deleted)
