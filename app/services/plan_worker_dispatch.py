"""
Dispatch job sang worker: POST {job_id, user_id} lên PLAN_WORKER_URL nếu có cấu hình,
ngược lại chạy orchestrator trong process qua BackgroundTasks.
Trigger lỗi -> job failed với "Worker trigger error: ...".
"""
from typing import Optional
from uuid import UUID

import httpx
from fastapi import BackgroundTasks

from app.config import get_settings
from app.db import session_scope
from app.logging_config import get_logger
from app.services.plan_generation_service import run_plan_job_in_background
from app.services.plan_job_repository import PlanJobRepository

logger = get_logger(__name__)

# Số lần retry khi gọi worker (retry 1 = gọi tối đa 2 lần)
WORKER_TRIGGER_RETRIES = 1


async def trigger_remote_worker(job_id: UUID, user_id: UUID) -> Optional[str]:
    """
    POST trigger lên PLAN_WORKER_URL. Trả về None nếu worker nhận (2xx) hoặc đã sở hữu job (409), ngược lại là thông báo lỗi.
    Worker chạy hết job rồi mới trả lời nên timeout chỉ giới hạn việc chờ; job vẫn tiếp tục ở worker.
    """
    settings = get_settings()
    url = settings.plan_worker_url
    body = {"job_id": str(job_id), "user_id": str(user_id)}
    last_error: Optional[str] = None
    for attempt in range(WORKER_TRIGGER_RETRIES + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.plan_worker_timeout_seconds) as client:
                resp = await client.post(url, json=body)
            if resp.status_code == 409:
                # Job đã rời queued: worker (lần gọi trước) đang chạy hoặc đã chạy xong.
                logger.info("plan_worker.trigger_already_claimed", job_id=str(job_id), attempt=attempt + 1)
                return None
            if resp.status_code >= 400:
                last_error = f"Worker HTTP {resp.status_code}: {resp.text[:300]}"
                logger.warning(
                    "plan_worker.trigger_failed",
                    job_id=str(job_id),
                    attempt=attempt + 1,
                    status=resp.status_code,
                )
                continue
            logger.info("plan_worker.triggered", job_id=str(job_id), status=resp.status_code)
            return None
        except httpx.ReadTimeout:
            # Worker đã nhận request và đang chạy job.
            logger.info("plan_worker.trigger_timeout_detached", job_id=str(job_id))
            return None
        except httpx.HTTPError as e:
            last_error = f"Worker trigger error: {e}"
            logger.warning("plan_worker.trigger_error", job_id=str(job_id), attempt=attempt + 1, error=str(e))
    return last_error


async def _trigger_or_fail(job_id: UUID, user_id: UUID) -> None:
    """Trigger remote worker; lỗi thì ghi job failed (chỉ khi job vẫn queued) để client polling thấy."""
    error = await trigger_remote_worker(job_id, user_id)
    if error is None:
        return
    async with session_scope() as db:
        failed = await PlanJobRepository(db).fail_if_queued(job_id, error)
    if not failed:
        logger.info("plan_worker.trigger_error_ignored", job_id=str(job_id), error=error)


def dispatch_plan_job(background_tasks: BackgroundTasks, job_id: UUID, user_id: UUID) -> str:
    """Lên lịch chạy job sau khi response trả về. Trả về mode: "remote" | "in_process"."""
    settings = get_settings()
    if settings.plan_worker_url and settings.plan_worker_url.strip():
        background_tasks.add_task(_trigger_or_fail, job_id, user_id)
        mode = "remote"
    else:
        background_tasks.add_task(run_plan_job_in_background, job_id, user_id)
        mode = "in_process"
    logger.info("plan_job.dispatched", job_id=str(job_id), mode=mode)
    return mode
