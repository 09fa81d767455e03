"""Đọc / đánh dấu hoàn thành / xóa personalized_plans của user."""
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.logging_config import get_logger
from app.models import PersonalizedPlan

logger = get_logger(__name__)


async def list_active_plans(
    db: AsyncSession,
    user_id: UUID,
    plan_type: Optional[str] = None,
    plan_date: Optional[date] = None,
) -> List[PersonalizedPlan]:
    """Các ngày plan đang active của user, sắp theo date."""
    q = select(PersonalizedPlan).where(
        PersonalizedPlan.user_id == user_id,
        PersonalizedPlan.is_active.is_(True),
    )
    if plan_type:
        q = q.where(PersonalizedPlan.plan_type == plan_type)
    if plan_date:
        q = q.where(PersonalizedPlan.date == plan_date)
    r = await db.execute(q.order_by(PersonalizedPlan.date))
    return list(r.scalars().all())


async def set_plan_completed(
    db: AsyncSession,
    plan_id: UUID,
    user_id: UUID,
    completed: bool,
) -> PersonalizedPlan:
    """Toggle is_completed. Raises ValueError("plan_not_found") nếu không thuộc user."""
    r = await db.execute(
        update(PersonalizedPlan)
        .where(PersonalizedPlan.id == plan_id, PersonalizedPlan.user_id == user_id)
        .values(is_completed=completed)
        .returning(PersonalizedPlan)
        .execution_options(populate_existing=True)
    )
    plan = r.scalar_one_or_none()
    if plan is None:
        raise ValueError("plan_not_found")
    logger.info("personalized_plan.completed_set", plan_id=str(plan_id), completed=completed)
    return plan


async def delete_plan(db: AsyncSession, plan_id: UUID, user_id: UUID) -> int:
    """Xóa một ngày. Raises ValueError("plan_not_found")."""
    r = await db.execute(
        delete(PersonalizedPlan).where(
            PersonalizedPlan.id == plan_id,
            PersonalizedPlan.user_id == user_id,
        )
    )
    if not r.rowcount:
        raise ValueError("plan_not_found")
    logger.info("personalized_plan.deleted", plan_id=str(plan_id), user_id=str(user_id))
    return r.rowcount


async def delete_all_plans(db: AsyncSession, user_id: UUID) -> int:
    """Xóa toàn bộ plan của user; trả về số row đã xóa."""
    r = await db.execute(delete(PersonalizedPlan).where(PersonalizedPlan.user_id == user_id))
    deleted = r.rowcount or 0
    logger.info("personalized_plan.deleted_all", user_id=str(user_id), deleted=deleted)
    return deleted
