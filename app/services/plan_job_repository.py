"""
Repository cho plan_generation_jobs + personalized_plans.
Mỗi thay đổi trạng thái job được commit ngay để client polling thấy được.
Một job_id chỉ có một writer: claim_job chuyển queued -> checking_profile một cách atomic.
"""
from datetime import date
from typing import Any, Dict, List, NamedTuple, Optional, Set
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import Insert, insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.logging_config import get_logger
from app.models import (
    PLAN_TYPE_WORKOUT,
    PersonalizedPlan,
    PlanGenerationJob,
    User,
    UserFitnessProfile,
    UserGoal,
    WorkoutSession,
)
from app.schemas.plan_jobs import TERMINAL_STATUSES, JobStatusEnum, ProgressData
from app.services.errors import MissingPrerequisiteError, PlanPersistenceError

logger = get_logger(__name__)


class ProfileBundle(NamedTuple):
    """Dữ liệu đọc một lần ở bước checking_profile."""

    profile: UserFitnessProfile
    user: User
    goals: Optional[UserGoal]


def build_plan_day_upsert(
    *,
    user_id: UUID,
    plan_date: date,
    focus: str,
    workout_content: Dict[str, Any],
    nutrition_guidance: Optional[Dict[str, Any]],
    profile_id: Optional[UUID] = None,
    job_id: Optional[UUID] = None,
    plan_type: str = PLAN_TYPE_WORKOUT,
) -> Insert:
    """INSERT ... ON CONFLICT (user_id, date, plan_type) DO UPDATE: sinh lại một ngày sẽ ghi đè, không tạo trùng."""
    stmt = pg_insert(PersonalizedPlan).values(
        user_id=user_id,
        profile_id=profile_id,
        generation_job_id=job_id,
        plan_type=plan_type,
        date=plan_date,
        focus=focus,
        workout_content=workout_content,
        nutrition_guidance=nutrition_guidance,
        is_active=True,
        is_completed=False,
    )
    return stmt.on_conflict_do_update(
        index_elements=["user_id", "date", "plan_type"],
        set_={
            "profile_id": stmt.excluded.profile_id,
            "generation_job_id": stmt.excluded.generation_job_id,
            "focus": stmt.excluded.focus,
            "workout_content": stmt.excluded.workout_content,
            "nutrition_guidance": stmt.excluded.nutrition_guidance,
            "is_active": True,
            "is_completed": False,
            "updated_at": func.now(),
        },
    )


class PlanJobRepository:
    """SQLAlchemy-backed job store + plan store."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # --- job store ---

    async def get_job(self, job_id: UUID) -> Optional[PlanGenerationJob]:
        r = await self.db.execute(
            select(PlanGenerationJob)
            .where(PlanGenerationJob.id == job_id)
            .execution_options(populate_existing=True)
        )
        return r.scalar_one_or_none()

    async def create_job(self, user_id: UUID, request_payload: Dict[str, Any]) -> PlanGenerationJob:
        """Tạo job status=queued. request_payload không đổi sau khi tạo."""
        job = PlanGenerationJob(
            user_id=user_id,
            status=JobStatusEnum.QUEUED.value,
            request_payload=request_payload,
        )
        self.db.add(job)
        await self.db.flush()
        await self.db.commit()
        logger.info("plan_job.created", job_id=str(job.id), user_id=str(user_id))
        return job

    async def claim_job(self, job_id: UUID) -> PlanGenerationJob:
        """
        queued -> checking_profile (atomic UPDATE ... WHERE status='queued').
        Raises ValueError("job_not_found") hoặc ValueError("job_not_queued") khi đã có worker khác chạy.
        """
        r = await self.db.execute(
            update(PlanGenerationJob)
            .where(
                PlanGenerationJob.id == job_id,
                PlanGenerationJob.status == JobStatusEnum.QUEUED.value,
            )
            .values(status=JobStatusEnum.CHECKING_PROFILE.value)
            .returning(PlanGenerationJob.id)
        )
        claimed = r.scalar_one_or_none()
        await self.db.commit()
        job = await self.get_job(job_id)
        if job is None:
            raise ValueError("job_not_found")
        if claimed is None:
            raise ValueError("job_not_queued")
        return job

    async def set_status(
        self,
        job_id: UUID,
        status: JobStatusEnum,
        progress: Optional[ProgressData] = None,
    ) -> None:
        values: Dict[str, Any] = {"status": status.value}
        if progress is not None:
            values["progress_data"] = progress.model_dump()
        await self.db.execute(update(PlanGenerationJob).where(PlanGenerationJob.id == job_id).values(**values))
        await self.db.commit()

    async def update_progress(self, job_id: UUID, progress: ProgressData) -> None:
        await self.db.execute(
            update(PlanGenerationJob)
            .where(PlanGenerationJob.id == job_id)
            .values(progress_data=progress.model_dump())
        )
        await self.db.commit()

    async def mark_complete(self, job_id: UUID, result: Dict[str, Any]) -> None:
        """status=complete, result_payload set, error_message xóa."""
        await self.db.execute(
            update(PlanGenerationJob)
            .where(PlanGenerationJob.id == job_id)
            .values(
                status=JobStatusEnum.COMPLETE.value,
                result_payload=result,
                error_message=None,
                completed_at=func.now(),
            )
        )
        await self.db.commit()

    async def mark_failed(self, job_id: UUID, message: str) -> None:
        """status=failed, error_message set, result_payload xóa."""
        # Session có thể đang ở trạng thái lỗi (ví dụ DB error giữa chừng).
        await self.db.rollback()
        await self.db.execute(
            update(PlanGenerationJob)
            .where(PlanGenerationJob.id == job_id)
            .values(
                status=JobStatusEnum.FAILED.value,
                error_message=message,
                result_payload=None,
                completed_at=None,
            )
        )
        await self.db.commit()

    async def fail_if_queued(self, job_id: UUID, message: str) -> bool:
        """
        failed chỉ khi job vẫn queued (dispatcher không trigger được worker).
        False nếu worker đã claim job: không ghi đè trạng thái/result của worker.
        """
        r = await self.db.execute(
            update(PlanGenerationJob)
            .where(
                PlanGenerationJob.id == job_id,
                PlanGenerationJob.status == JobStatusEnum.QUEUED.value,
            )
            .values(
                status=JobStatusEnum.FAILED.value,
                error_message=message,
                result_payload=None,
                completed_at=None,
            )
            .returning(PlanGenerationJob.id)
        )
        failed = r.scalar_one_or_none() is not None
        await self.db.commit()
        return failed

    async def reset_for_retry(self, job_id: UUID) -> PlanGenerationJob:
        """
        Đưa job terminal về queued để chạy lại.
        Raises ValueError("job_not_found") / ValueError("job_in_progress").
        """
        job = await self.get_job(job_id)
        if job is None:
            raise ValueError("job_not_found")
        if job.status not in TERMINAL_STATUSES and job.status != JobStatusEnum.QUEUED.value:
            raise ValueError("job_in_progress")
        await self.db.execute(
            update(PlanGenerationJob)
            .where(PlanGenerationJob.id == job_id)
            .values(
                status=JobStatusEnum.QUEUED.value,
                error_message=None,
                result_payload=None,
                completed_at=None,
            )
        )
        await self.db.commit()
        return await self.get_job(job_id)

    # --- profile & history (read-only) ---

    async def has_fitness_profile(self, user_id: UUID) -> bool:
        r = await self.db.execute(select(UserFitnessProfile.id).where(UserFitnessProfile.user_id == user_id))
        return r.scalar_one_or_none() is not None

    async def load_profile_bundle(self, user_id: UUID) -> ProfileBundle:
        """Profile + user + goals. Thiếu profile hoặc user -> MissingPrerequisiteError."""
        r = await self.db.execute(select(UserFitnessProfile).where(UserFitnessProfile.user_id == user_id))
        profile = r.scalar_one_or_none()
        r = await self.db.execute(select(User).where(User.id == user_id))
        user = r.scalar_one_or_none()
        r = await self.db.execute(select(UserGoal).where(UserGoal.user_id == user_id))
        goals = r.scalar_one_or_none()
        if profile is None or user is None:
            raise MissingPrerequisiteError("User profile or info not found")
        return ProfileBundle(profile=profile, user=user, goals=goals)

    async def list_recent_workouts(self, user_id: UUID, limit: int = 20) -> List[WorkoutSession]:
        """Các buổi tập đã hoàn thành gần nhất, mới nhất trước."""
        r = await self.db.execute(
            select(WorkoutSession)
            .where(
                WorkoutSession.user_id == user_id,
                WorkoutSession.completed_at.isnot(None),
            )
            .order_by(WorkoutSession.completed_at.desc())
            .limit(limit)
        )
        return list(r.scalars().all())

    # --- plan store ---

    async def saved_dates_for_job(self, job_id: UUID) -> Set[date]:
        """Các ngày mà chính job này đã ghi (dùng khi chạy lại job)."""
        r = await self.db.execute(
            select(PersonalizedPlan.date).where(
                PersonalizedPlan.generation_job_id == job_id,
                PersonalizedPlan.plan_type == PLAN_TYPE_WORKOUT,
            )
        )
        return {row[0] for row in r.all()}

    async def upsert_plan_day(
        self,
        *,
        user_id: UUID,
        plan_date: date,
        focus: str,
        workout_content: Dict[str, Any],
        nutrition_guidance: Optional[Dict[str, Any]],
        profile_id: Optional[UUID] = None,
        job_id: Optional[UUID] = None,
    ) -> None:
        """
        Upsert một ngày trong SAVEPOINT; lỗi DB -> PlanPersistenceError.
        Chỉ rollback savepoint: rollback cả session sẽ expire profile/history đang dùng cho các ngày sau.
        """
        stmt = build_plan_day_upsert(
            user_id=user_id,
            plan_date=plan_date,
            focus=focus,
            workout_content=workout_content,
            nutrition_guidance=nutrition_guidance,
            profile_id=profile_id,
            job_id=job_id,
        )
        try:
            async with self.db.begin_nested():
                await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise PlanPersistenceError(f"Failed to save plan for {plan_date.isoformat()}: {e}") from e
        await self.db.commit()
