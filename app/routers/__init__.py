"""API routers."""
from app.routers.health_router import router as health_router
from app.routers.plan_jobs_router import router as plan_jobs_router
from app.routers.plan_worker_router import router as plan_worker_router
from app.routers.personalized_plans_router import router as personalized_plans_router

__all__ = [
    "health_router",
    "plan_jobs_router",
    "plan_worker_router",
    "personalized_plans_router",
]
