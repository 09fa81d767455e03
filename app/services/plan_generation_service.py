"""
Plan generation orchestrator.
queued -> checking_profile -> checking_previous_workouts -> creating_plan -> complete | failed.
Xử lý tuần tự từng ngày: cập nhật progress, gọi LLM, upsert ngay (không đợi cuối job).
Lỗi sinh plan là fatal cho cả job; lỗi ghi một ngày chỉ log và bỏ ngày đó khỏi savedDays.
"""
import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from app.config import Settings, get_settings
from app.db import session_scope
from app.logging_config import bind_job_context, clear_job_context, get_logger
from app.models import WorkoutSession
from app.schemas.plan_jobs import JobStatusEnum, ProgressData, ScheduleWeekRequest
from app.services.day_plan_generator import DayPlanGenerator, plan_date_for
from app.services.errors import MissingPrerequisiteError, PlanJobFailed, PlanPersistenceError
from app.services.llm_service import LLMService
from app.services.plan_job_repository import PlanJobRepository

logger = get_logger(__name__)

DAYS_PER_WEEK = 7
# Các field đã có cột riêng (date) hoặc thuộc nutrition_guidance.
HOISTED_WORKOUT_FIELDS = ("date", "dayName", "macros")


def is_rest_day(focus: str) -> bool:
    """Focus "rest" (không phân biệt hoa thường) -> không sinh, không lưu."""
    return (focus or "").strip().lower() == "rest"


def find_previous_workout(history: Sequence[WorkoutSession], focus: str) -> Optional[WorkoutSession]:
    """Buổi tập gần nhất (history đã sort mới nhất trước) có workout cùng focus."""
    target = (focus or "").strip().casefold()
    for session in history:
        content = session.workout_content
        if not isinstance(content, dict):
            continue
        for entry in content.get("workouts") or []:
            if isinstance(entry, dict) and str(entry.get("focus") or "").strip().casefold() == target:
                return session
    return None


def split_day_plan(day_plan: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """Tách output LLM thành (workout_content, nutrition_guidance); bỏ date/dayName/macros khỏi workout."""
    workout = dict(day_plan.get("workout") or {})
    for key in HOISTED_WORKOUT_FIELDS:
        workout.pop(key, None)
    return workout, day_plan.get("macros")


def build_progress(day_index: int, total_days: int, focus: Optional[str]) -> ProgressData:
    """progress_data cho ngày sắp xử lý (day_index 0-based)."""
    return ProgressData(
        current_day=day_index + 1,
        total_days=total_days,
        current_week=day_index // DAYS_PER_WEEK + 1,
        total_weeks=max(1, math.ceil(total_days / DAYS_PER_WEEK)),
        current_focus=focus,
    )


class PlanGenerationOrchestrator:
    """run(job_id, user_id): mọi side effect đi qua repository; caller poll job row để lấy kết quả."""

    def __init__(
        self,
        repo: PlanJobRepository,
        generator: DayPlanGenerator,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repo = repo
        self.generator = generator
        self.settings = settings or get_settings()

    async def run(self, job_id: UUID, user_id: UUID) -> Dict[str, Any]:
        """
        Chạy job tới complete hoặc failed.
        Raises ValueError("job_not_found") / ValueError("job_not_queued") trước khi chạm vào job;
        PlanJobFailed sau khi đã ghi status=failed (lỗi gốc nằm ở __cause__).
        """
        job = await self.repo.claim_job(job_id)
        bind_job_context(job_id=job_id, user_id=user_id)
        logger.info("plan_job.started")
        try:
            return await self._run_claimed(job_id, user_id, job.user_id, job.request_payload)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.error("plan_job.failed", error=message, error_type=exc.__class__.__name__)
            await self.repo.mark_failed(job_id, message)
            raise PlanJobFailed(job_id, message) from exc
        finally:
            clear_job_context("job_id", "user_id")

    async def _run_claimed(
        self,
        job_id: UUID,
        user_id: UUID,
        owner_id: UUID,
        request_payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        if owner_id != user_id:
            raise MissingPrerequisiteError("Job does not belong to user")
        request = ScheduleWeekRequest.model_validate(request_payload)

        # checking_profile (status đã set khi claim)
        bundle = await self.repo.load_profile_bundle(user_id)

        await self.repo.set_status(job_id, JobStatusEnum.CHECKING_PREVIOUS_WORKOUTS)
        history = await self.repo.list_recent_workouts(user_id, limit=self.settings.plan_history_limit)
        logger.info("plan_job.history_loaded", sessions=len(history))

        total_days = len(request.schedule)
        await self.repo.set_status(
            job_id,
            JobStatusEnum.CREATING_PLAN,
            progress=ProgressData(
                current_day=0,
                total_days=total_days,
                current_week=0,
                total_weeks=max(1, math.ceil(total_days / DAYS_PER_WEEK)),
            ),
        )

        already_saved = set()
        if self.settings.plan_job_resume_saved_days:
            already_saved = await self.repo.saved_dates_for_job(job_id)

        saved_days: List[str] = []
        for index, day in enumerate(request.schedule):
            plan_date = plan_date_for(request.start_date, index)
            await self.repo.update_progress(job_id, build_progress(index, total_days, day.focus))

            if is_rest_day(day.focus):
                logger.info("plan_job.rest_day_skipped", plan_date=plan_date.isoformat(), day=day.day)
                continue
            if plan_date in already_saved:
                logger.info("plan_job.day_already_saved", plan_date=plan_date.isoformat(), focus=day.focus)
                saved_days.append(plan_date.isoformat())
                continue

            previous = find_previous_workout(history, day.focus)
            day_plan = await self.generator.generate_day_plan(
                bundle.profile,
                bundle.user,
                bundle.goals,
                day,
                request.start_date,
                index,
                previous,
            )
            if await self._save_day(job_id, user_id, bundle.profile.id, plan_date, day.focus, day_plan):
                saved_days.append(plan_date.isoformat())

        result = {"workout": {"savedDays": saved_days, "count": len(saved_days)}}
        await self.repo.mark_complete(job_id, result)
        logger.info("plan_job.complete", saved=len(saved_days), total_days=total_days)
        return result

    async def _save_day(
        self,
        job_id: UUID,
        user_id: UUID,
        profile_id: Optional[UUID],
        plan_date: date,
        focus: str,
        day_plan: Dict[str, Any],
    ) -> bool:
        """Upsert một ngày. False nếu ghi lỗi (không fatal)."""
        workout_content, nutrition = split_day_plan(day_plan)
        try:
            await self.repo.upsert_plan_day(
                user_id=user_id,
                plan_date=plan_date,
                focus=focus,
                workout_content=workout_content,
                nutrition_guidance=nutrition,
                profile_id=profile_id,
                job_id=job_id,
            )
        except PlanPersistenceError as e:
            logger.error("plan_job.day_save_failed", plan_date=plan_date.isoformat(), error=str(e))
            return False
        logger.info("plan_job.day_saved", plan_date=plan_date.isoformat(), focus=focus)
        return True


def build_orchestrator(repo: PlanJobRepository, settings: Optional[Settings] = None) -> PlanGenerationOrchestrator:
    """Orchestrator với LLMService thật."""
    settings = settings or get_settings()
    generator = DayPlanGenerator(LLMService(settings), default_calorie_goal=settings.default_daily_calorie_goal)
    return PlanGenerationOrchestrator(repo, generator, settings)


async def run_plan_job_in_background(job_id: UUID, user_id: UUID) -> None:
    """Chạy job với session riêng (BackgroundTasks). Kết quả nằm ở job row nên lỗi chỉ log."""
    async with session_scope() as db:
        orchestrator = build_orchestrator(PlanJobRepository(db))
        try:
            await orchestrator.run(job_id, user_id)
        except PlanJobFailed as e:
            logger.warning("plan_job.background_failed", job_id=str(job_id), error=e.message)
        except ValueError as e:
            logger.warning("plan_job.background_skipped", job_id=str(job_id), reason=str(e))
