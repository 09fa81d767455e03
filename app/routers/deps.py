"""Shared FastAPI dependencies (overridable in tests)."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_db
from app.services.plan_generation_service import PlanGenerationOrchestrator, build_orchestrator
from app.services.plan_job_repository import PlanJobRepository


async def get_plan_job_repository(db: AsyncSession = Depends(get_db)) -> PlanJobRepository:
    """Repository gắn với session của request."""
    return PlanJobRepository(db)


async def get_plan_orchestrator(
    repo: PlanJobRepository = Depends(get_plan_job_repository),
) -> PlanGenerationOrchestrator:
    """Orchestrator dùng LLMService thật (OPENROUTER_*)."""
    return build_orchestrator(repo)
