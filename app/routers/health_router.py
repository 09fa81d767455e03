# Health: /health va /api/healthz (liveness), /api/readyz (readiness: DB + Redis neu co).
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db import get_db
from app.logging_config import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health")
@router.get("/api/healthz")
def healthz() -> dict[str, str]:
    """Liveness: process dang chay. Luon 200."""
    return {"status": "ok"}


@router.get("/api/readyz")
async def readyz(db: AsyncSession = Depends(get_db)):
    """Readiness: 200 khi DB (va Redis neu cau hinh) san sang, 503 neu loi."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("readyz.db_fail", error=str(e))
        return JSONResponse(status_code=503, content={"status": "unhealthy", "db": "fail"})

    settings = get_settings()
    redis_state = "skipped"
    if settings.redis_url:
        from redis.asyncio import Redis

        client = Redis.from_url(settings.redis_url, decode_responses=True)
        try:
            await client.ping()
            redis_state = "ok"
        except Exception as e:
            logger.warning("readyz.redis_fail", error=str(e))
            return JSONResponse(status_code=503, content={"status": "unhealthy", "redis": "fail"})
        finally:
            await client.aclose()

    return {"status": "ok", "db": "ok", "redis": redis_state}
