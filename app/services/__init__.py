"""Business logic services."""
from app.services.plan_generation_service import PlanGenerationOrchestrator, run_plan_job_in_background
from app.services.plan_job_repository import PlanJobRepository
from app.services.plan_worker_dispatch import dispatch_plan_job

__all__ = [
    "PlanGenerationOrchestrator",
    "PlanJobRepository",
    "dispatch_plan_job",
    "run_plan_job_in_background",
]
