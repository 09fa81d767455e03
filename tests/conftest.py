"""
Shared fixtures: in-memory job/plan store + scripted day generator.
Không cần Postgres: fake có cùng method với PlanJobRepository.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest

from app.config import Settings
from app.models import PlanGenerationJob, User, UserFitnessProfile, UserGoal, WorkoutSession
from app.schemas.plan_jobs import TERMINAL_STATUSES, JobStatusEnum, ProgressData
from app.services.errors import MissingPrerequisiteError, PlanPersistenceError
from app.services.plan_job_repository import ProfileBundle


def make_day_plan(focus: str = "Push", calories: int = 2400) -> Dict[str, Any]:
    """Output LLM hợp lệ cho một ngày."""
    return {
        "workout": {
            "date": "2024-01-01",
            "dayName": "Monday",
            "focus": focus,
            "style": "Hypertrophy",
            "duration": 60,
            "warmup": "5 min row",
            "cooldown": "Stretch",
            "exercises": [
                {"name": "Bench Press", "sets": 4, "reps": "8-10", "rest": "90s", "weight": "60kg"},
                {"name": "Overhead Press", "sets": 3, "reps": "10", "rest": "60s"},
            ],
            "cardio": None,
            "macros": {"should": "be dropped"},
        },
        "macros": {"calories": calories, "protein_g": 180, "carbs_g": 250, "fat_g": 70, "notes": "Protein post-workout"},
    }


class FakePlanJobRepository:
    """In-memory stand-in cho PlanJobRepository; ghi lại thứ tự status/progress."""

    def __init__(self) -> None:
        self.jobs: Dict[uuid.UUID, PlanGenerationJob] = {}
        self.plans: Dict[Tuple[uuid.UUID, date, str], Dict[str, Any]] = {}
        self.bundles: Dict[uuid.UUID, ProfileBundle] = {}
        self.history: Dict[uuid.UUID, List[WorkoutSession]] = {}
        self.status_log: List[str] = []
        self.progress_log: List[Dict[str, Any]] = []
        self.fail_upsert_dates: Set[date] = set()
        self.upsert_calls: List[date] = []
        self.history_limits: List[int] = []

    # --- seeding helpers ---

    def add_user(self, user_id: Optional[uuid.UUID] = None, calorie_goal: Optional[int] = 2500) -> uuid.UUID:
        user_id = user_id or uuid.uuid4()
        profile = UserFitnessProfile(
            id=uuid.uuid4(),
            user_id=user_id,
            fitness_level="intermediate",
            primary_goals=["Build Muscle"],
            available_equipment=["Barbell", "Dumbbells"],
            workout_duration=60,
            strength_levels={"bench_press": "80kg"},
            injuries_limitations=None,
        )
        user = User(id=user_id, email=f"{user_id}@example.com", height=Decimal("180.0"), current_weight=Decimal("82.5"))
        goals = UserGoal(id=uuid.uuid4(), user_id=user_id, daily_calorie_goal=calorie_goal) if calorie_goal else None
        self.bundles[user_id] = ProfileBundle(profile=profile, user=user, goals=goals)
        return user_id

    def add_job(self, user_id: uuid.UUID, payload: Dict[str, Any], status: str = "queued") -> PlanGenerationJob:
        job = PlanGenerationJob(
            id=uuid.uuid4(),
            user_id=user_id,
            status=status,
            request_payload=payload,
            progress_data=None,
            result_payload=None,
            error_message=None,
            completed_at=None,
        )
        self.jobs[job.id] = job
        return job

    # --- job store ---

    async def get_job(self, job_id: uuid.UUID) -> Optional[PlanGenerationJob]:
        return self.jobs.get(job_id)

    async def create_job(self, user_id: uuid.UUID, request_payload: Dict[str, Any]) -> PlanGenerationJob:
        return self.add_job(user_id, request_payload)

    async def claim_job(self, job_id: uuid.UUID) -> PlanGenerationJob:
        job = self.jobs.get(job_id)
        if job is None:
            raise ValueError("job_not_found")
        if job.status != JobStatusEnum.QUEUED.value:
            raise ValueError("job_not_queued")
        job.status = JobStatusEnum.CHECKING_PROFILE.value
        self.status_log.append(job.status)
        return job

    async def set_status(self, job_id: uuid.UUID, status: JobStatusEnum, progress: Optional[ProgressData] = None) -> None:
        job = self.jobs[job_id]
        job.status = status.value
        self.status_log.append(job.status)
        if progress is not None:
            await self.update_progress(job_id, progress)

    async def update_progress(self, job_id: uuid.UUID, progress: ProgressData) -> None:
        data = progress.model_dump()
        self.jobs[job_id].progress_data = data
        self.progress_log.append(data)

    async def mark_complete(self, job_id: uuid.UUID, result: Dict[str, Any]) -> None:
        job = self.jobs[job_id]
        job.status = JobStatusEnum.COMPLETE.value
        job.result_payload = result
        job.error_message = None
        job.completed_at = datetime.now(timezone.utc)
        self.status_log.append(job.status)

    async def mark_failed(self, job_id: uuid.UUID, message: str) -> None:
        job = self.jobs[job_id]
        job.status = JobStatusEnum.FAILED.value
        job.error_message = message
        job.result_payload = None
        job.completed_at = None
        self.status_log.append(job.status)

    async def reset_for_retry(self, job_id: uuid.UUID) -> PlanGenerationJob:
        job = self.jobs.get(job_id)
        if job is None:
            raise ValueError("job_not_found")
        if job.status not in TERMINAL_STATUSES and job.status != JobStatusEnum.QUEUED.value:
            raise ValueError("job_in_progress")
        job.status = JobStatusEnum.QUEUED.value
        job.error_message = None
        job.result_payload = None
        job.completed_at = None
        return job

    # --- profile & history ---

    async def has_fitness_profile(self, user_id: uuid.UUID) -> bool:
        return user_id in self.bundles

    async def load_profile_bundle(self, user_id: uuid.UUID) -> ProfileBundle:
        bundle = self.bundles.get(user_id)
        if bundle is None:
            raise MissingPrerequisiteError("User profile or info not found")
        return bundle

    async def list_recent_workouts(self, user_id: uuid.UUID, limit: int = 20) -> List[WorkoutSession]:
        self.history_limits.append(limit)
        return list(self.history.get(user_id, []))[:limit]

    # --- plan store ---

    async def saved_dates_for_job(self, job_id: uuid.UUID) -> Set[date]:
        return {key[1] for key, row in self.plans.items() if row["generation_job_id"] == job_id}

    async def upsert_plan_day(
        self,
        *,
        user_id: uuid.UUID,
        plan_date: date,
        focus: str,
        workout_content: Dict[str, Any],
        nutrition_guidance: Optional[Dict[str, Any]],
        profile_id: Optional[uuid.UUID] = None,
        job_id: Optional[uuid.UUID] = None,
    ) -> None:
        self.upsert_calls.append(plan_date)
        if plan_date in self.fail_upsert_dates:
            raise PlanPersistenceError(f"Failed to save plan for {plan_date.isoformat()}: boom")
        self.plans[(user_id, plan_date, "workout")] = {
            "focus": focus,
            "workout_content": workout_content,
            "nutrition_guidance": nutrition_guidance,
            "profile_id": profile_id,
            "generation_job_id": job_id,
            "is_active": True,
            "is_completed": False,
        }

    def saved_dates(self, user_id: uuid.UUID) -> List[str]:
        return sorted(key[1].isoformat() for key in self.plans if key[0] == user_id)


class ScriptedDayGenerator:
    """Thay DayPlanGenerator: trả plan hợp lệ hoặc raise theo day_index."""

    def __init__(self, failures: Optional[Dict[int, Exception]] = None, plan_factory: Optional[Callable[..., Dict[str, Any]]] = None) -> None:
        self.failures = failures or {}
        self.plan_factory = plan_factory or make_day_plan
        self.calls: List[Dict[str, Any]] = []

    async def generate_day_plan(self, profile, user_info, goals, day, start_date, day_index, previous_workout) -> Dict[str, Any]:
        self.calls.append({"day_index": day_index, "focus": day.focus, "previous_workout": previous_workout})
        if day_index in self.failures:
            raise self.failures[day_index]
        return self.plan_factory(day.focus)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(PLAN_HISTORY_LIMIT=20, PLAN_JOB_RESUME_SAVED_DAYS=True, OPENROUTER_API_KEY="test-key")


@pytest.fixture
def fake_repo() -> FakePlanJobRepository:
    return FakePlanJobRepository()


@pytest.fixture
def generator() -> ScriptedDayGenerator:
    return ScriptedDayGenerator()


@pytest.fixture
def day_plan_factory() -> Callable[..., Dict[str, Any]]:
    return make_day_plan


@pytest.fixture
def make_generator() -> Callable[..., ScriptedDayGenerator]:
    return ScriptedDayGenerator
