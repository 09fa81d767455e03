"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app import __version__
from app.db import engine
from app.logging_config import configure_logging, get_logger
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.routers import (
    health_router,
    personalized_plans_router,
    plan_jobs_router,
    plan_worker_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging, dispose DB pool."""
    configure_logging()
    logger.info("app_started", version=__version__)
    yield
    await engine.dispose()
    logger.info("app_shutdown")


app = FastAPI(
    title="FitGrit Plan Worker",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(plan_jobs_router)
app.include_router(plan_worker_router)
app.include_router(personalized_plans_router)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "fitgrit_plan_worker", "version": __version__}
