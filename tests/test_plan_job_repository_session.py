"""
Test PlanJobRepository + orchestrator với session SQLAlchemy thật (SQLite in-memory qua aiosqlite).
- Lỗi ghi một ngày chỉ rollback SAVEPOINT: profile/history vẫn đọc được cho các ngày sau.
- claim_job / fail_if_queued / mark_failed / reset_for_retry trên row thật.
- Chạy lại job bỏ qua các ngày chính job đó đã ghi.
"""
import json
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import event, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from app.db import Base
from app.models import PersonalizedPlan, User, UserFitnessProfile, UserGoal, WorkoutSession
from app.schemas.plan_jobs import JobStatusEnum
from app.services import plan_job_repository
from app.services.day_plan_generator import DayPlanGenerator
from app.services.errors import PlanJobFailed, PlanPersistenceError
from app.services.plan_generation_service import PlanGenerationOrchestrator
from app.services.plan_job_repository import PlanJobRepository


@compiles(JSONB, "sqlite")
def _jsonb_as_sqlite_json(type_, compiler, **kw):
    return "JSON"


SCHEDULE = [
    {"day": "Wednesday", "focus": "Push"},
    {"day": "Thursday", "focus": "Pull"},
    {"day": "Friday", "focus": "Legs"},
]


@pytest_asyncio.fixture
async def session():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # pysqlite/aiosqlite tự quản lý BEGIN; tắt đi để SAVEPOINT chạy đúng.
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as db:
        yield db
    await engine.dispose()


async def _seed_user(db: AsyncSession) -> uuid.UUID:
    """User + profile + goals + một buổi Push đã hoàn thành."""
    user_id = uuid.uuid4()
    db.add(User(id=user_id, email=f"{user_id}@example.com", height=Decimal("180.0"), current_weight=Decimal("82.5")))
    db.add(
        UserFitnessProfile(
            user_id=user_id,
            fitness_level="intermediate",
            primary_goals=["Build Muscle"],
            available_equipment=["Barbell", "Dumbbells"],
            workout_duration=60,
            strength_levels={"bench_press": "80kg x 5"},
        )
    )
    db.add(UserGoal(user_id=user_id, daily_calorie_goal=2700))
    db.add(
        WorkoutSession(
            user_id=user_id,
            workout_content={"workouts": [{"focus": "push", "exercises": [{"name": "Bench Press", "sets": 4, "reps": "6"}]}]},
            completed_at=datetime(2024, 2, 20, 18, 0, tzinfo=timezone.utc),
        )
    )
    await db.commit()
    return user_id


async def _seed_job(db: AsyncSession, user_id: uuid.UUID, schedule=SCHEDULE) -> uuid.UUID:
    job = await PlanJobRepository(db).create_job(user_id, {"start_date": "2024-02-28", "schedule": schedule})
    return job.id


def _llm(*contents: str) -> MagicMock:
    llm = MagicMock()
    llm.complete_json = AsyncMock(side_effect=[(content, {}) for content in contents])
    return llm


async def _plan_rows(db: AsyncSession, user_id: uuid.UUID):
    r = await db.execute(
        select(PersonalizedPlan).where(PersonalizedPlan.user_id == user_id).order_by(PersonalizedPlan.date)
    )
    return list(r.scalars().all())


@pytest.mark.asyncio
async def test_failed_day_write_keeps_session_usable_for_later_days(session, test_settings, day_plan_factory) -> None:
    """Ghi 29/2 lỗi (NOT NULL) -> ngày 1/3 vẫn được sinh với profile đã load, job complete."""
    user_id = await _seed_user(session)
    job_id = await _seed_job(session, user_id)
    llm = _llm(*(json.dumps(day_plan_factory(focus)) for focus in ("Push", "Pull", "Legs")))
    orchestrator = PlanGenerationOrchestrator(PlanJobRepository(session), DayPlanGenerator(llm), test_settings)

    real_build = plan_job_repository.build_plan_day_upsert

    def _build(**kwargs):
        if kwargs["plan_date"] == date(2024, 2, 29):
            kwargs["user_id"] = None
        return real_build(**kwargs)

    with patch("app.services.plan_job_repository.build_plan_day_upsert", side_effect=_build):
        result = await orchestrator.run(job_id, user_id)

    assert result == {"workout": {"savedDays": ["2024-02-28", "2024-03-01"], "count": 2}}
    prompts = [c.args[1] for c in llm.complete_json.await_args_list]
    assert len(prompts) == 3
    assert "Height: 180.0 cm" in prompts[2]
    assert "Daily Calorie Goal: 2700 calories" in prompts[2]
    assert "PREVIOUS Push WORKOUT" in prompts[0]
    assert "PREVIOUS" not in prompts[1] and "PREVIOUS" not in prompts[2]

    job = await PlanJobRepository(session).get_job(job_id)
    assert job.status == JobStatusEnum.COMPLETE.value
    assert job.result_payload == result
    assert job.error_message is None
    assert job.progress_data["current_day"] == 3

    rows = await _plan_rows(session, user_id)
    assert [row.date for row in rows] == [date(2024, 2, 28), date(2024, 3, 1)]
    assert all(row.generation_job_id == job_id for row in rows)
    assert rows[1].nutrition_guidance["calories"] == 2400
    assert "macros" not in rows[1].workout_content


@pytest.mark.asyncio
async def test_upsert_plan_day_overwrites_and_wraps_db_errors(session) -> None:
    user_id = await _seed_user(session)
    job_id = await _seed_job(session, user_id)
    repo = PlanJobRepository(session)
    day = date(2024, 2, 29)

    await repo.upsert_plan_day(
        user_id=user_id, plan_date=day, focus="Push", workout_content={"exercises": []},
        nutrition_guidance=None, job_id=job_id,
    )
    await repo.upsert_plan_day(
        user_id=user_id, plan_date=day, focus="Legs", workout_content={"exercises": [{"name": "Squat"}]},
        nutrition_guidance={"calories": 2500}, job_id=job_id,
    )
    with pytest.raises(PlanPersistenceError, match="2024-03-01"):
        await repo.upsert_plan_day(
            user_id=None, plan_date=date(2024, 3, 1), focus="Pull", workout_content={},
            nutrition_guidance=None, job_id=job_id,
        )

    rows = await _plan_rows(session, user_id)
    assert len(rows) == 1
    assert rows[0].focus == "Legs"
    assert rows[0].nutrition_guidance == {"calories": 2500}
    assert await repo.saved_dates_for_job(job_id) == {day}
    assert await repo.saved_dates_for_job(uuid.uuid4()) == set()


@pytest.mark.asyncio
async def test_claim_fail_if_queued_and_retry_on_real_rows(session) -> None:
    user_id = await _seed_user(session)
    repo = PlanJobRepository(session)
    claimed_id = await _seed_job(session, user_id)
    queued_id = await _seed_job(session, user_id)

    job = await repo.claim_job(claimed_id)
    assert job.status == JobStatusEnum.CHECKING_PROFILE.value
    with pytest.raises(ValueError, match="job_not_queued"):
        await repo.claim_job(claimed_id)
    with pytest.raises(ValueError, match="job_not_found"):
        await repo.claim_job(uuid.uuid4())

    # Dispatcher báo lỗi trễ: job đã claim không bị ghi đè, job còn queued thì failed.
    assert await repo.fail_if_queued(claimed_id, "Worker HTTP 504: timeout") is False
    assert await repo.fail_if_queued(queued_id, "Worker HTTP 503: unavailable") is True
    claimed = await repo.get_job(claimed_id)
    assert claimed.status == JobStatusEnum.CHECKING_PROFILE.value
    assert claimed.error_message is None
    failed = await repo.get_job(queued_id)
    assert failed.status == JobStatusEnum.FAILED.value
    assert failed.error_message == "Worker HTTP 503: unavailable"

    with pytest.raises(ValueError, match="job_in_progress"):
        await repo.reset_for_retry(claimed_id)
    await repo.mark_failed(claimed_id, "AI did not return valid JSON")
    reset = await repo.reset_for_retry(claimed_id)
    assert reset.status == JobStatusEnum.QUEUED.value
    assert reset.error_message is None and reset.result_payload is None


@pytest.mark.asyncio
async def test_rerun_after_failure_resumes_from_saved_days(session, test_settings, day_plan_factory) -> None:
    """Lỗi sinh ngày 2 -> job failed, ngày 1 đã lưu; retry chỉ gọi LLM cho ngày 2."""
    user_id = await _seed_user(session)
    schedule = SCHEDULE[:2]
    job_id = await _seed_job(session, user_id, schedule)
    repo = PlanJobRepository(session)

    first = PlanGenerationOrchestrator(
        repo, DayPlanGenerator(_llm(json.dumps(day_plan_factory("Push")), "Sorry, I cannot help.")), test_settings
    )
    with pytest.raises(PlanJobFailed):
        await first.run(job_id, user_id)

    job = await repo.get_job(job_id)
    assert job.status == JobStatusEnum.FAILED.value
    assert job.error_message == "AI did not return valid JSON"
    assert job.result_payload is None
    assert await repo.saved_dates_for_job(job_id) == {date(2024, 2, 28)}

    await repo.reset_for_retry(job_id)
    llm = _llm(json.dumps(day_plan_factory("Pull")))
    result = await PlanGenerationOrchestrator(repo, DayPlanGenerator(llm), test_settings).run(job_id, user_id)

    assert result == {"workout": {"savedDays": ["2024-02-28", "2024-02-29"], "count": 2}}
    assert llm.complete_json.await_count == 1
    assert "Focus: Pull" in llm.complete_json.await_args.args[1]
    job = await repo.get_job(job_id)
    assert job.status == JobStatusEnum.COMPLETE.value
    assert job.error_message is None
    assert [row.focus for row in await _plan_rows(session, user_id)] == ["Push", "Pull"]
