"""
Rate limit middleware: Redis sliding window, key theo X-User-ID hoặc X-API-Key.
Mỗi job sinh plan tốn nhiều lần gọi LLM nên giới hạn theo user. Không có REDIS_URL thì bỏ qua.
"""
import time
import uuid
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.logging_config import get_logger

logger = get_logger(__name__)

REDIS_KEY_PREFIX = "rl:"
WINDOW_SECONDS = 60


def rate_limit_key(request: Request) -> Optional[str]:
    """Key cho rate limit: X-User-ID hoặc X-API-Key (nếu có)."""
    user = request.headers.get("X-User-ID", "").strip()
    if user:
        return f"user:{user}"
    api_key = request.headers.get("X-API-Key", "").strip()
    if api_key:
        return f"key:{api_key[:32]}"
    return None


async def check_sliding_window(redis_url: str, key: str, limit: int) -> bool:
    """
    ZADD now, ZREMRANGEBYSCORE (now-60), ZCARD.
    True nếu còn dưới limit. Redis lỗi thì cho qua (fail-open).
    """
    from redis.asyncio import Redis
    from redis.exceptions import RedisError

    now = time.time()
    rkey = REDIS_KEY_PREFIX + key
    client = Redis.from_url(redis_url, decode_responses=True)
    try:
        pipe = client.pipeline()
        pipe.zadd(rkey, {str(uuid.uuid4()): now})
        pipe.zremrangebyscore(rkey, "-inf", now - WINDOW_SECONDS)
        pipe.zcard(rkey)
        pipe.expire(rkey, WINDOW_SECONDS + 10)
        results = await pipe.execute()
        return results[2] <= limit
    except RedisError as e:
        logger.warning("rate_limit.redis_error", key=key, error=str(e))
        return True
    finally:
        await client.aclose()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """429 khi user/key vượt RATE_LIMIT_PER_MIN."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = get_settings()
        key = rate_limit_key(request) if settings.redis_url else None
        if not key:
            return await call_next(request)
        limit = settings.rate_limit_per_min
        if not await check_sliding_window(settings.redis_url, key, limit):
            logger.info("rate_limit.exceeded", key=key, limit=limit)
            return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded (per user/key)."})
        return await call_next(request)
