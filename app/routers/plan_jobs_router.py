"""API plan generation jobs: tạo job (202), polling status, chạy lại job."""
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from app.routers.deps import get_plan_job_repository
from app.schemas.plan_jobs import (
    JobRetryRequest,
    JobRetryResponse,
    JobScheduledResponse,
    JobStatusResponse,
    PlanJobCreateRequest,
)
from app.services.plan_job_repository import PlanJobRepository
from app.services.plan_worker_dispatch import dispatch_plan_job

router = APIRouter(prefix="/api/personalized-plans/generate-from-data", tags=["plan-jobs"])


@router.post(
    "",
    response_model=JobScheduledResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def post_generate_from_data(
    payload: PlanJobCreateRequest,
    background_tasks: BackgroundTasks,
    repo: PlanJobRepository = Depends(get_plan_job_repository),
) -> JobScheduledResponse:
    """
    Tạo job (status=queued) từ start_date + schedule rồi dispatch sang worker.
    Client poll GET ?job_id=... để theo dõi tiến độ.
    """
    if not await repo.has_fitness_profile(payload.user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "Fitness profile not found. Complete your profile first.",
                "code": "NO_PROFILE",
            },
        )
    request_payload = payload.to_payload()
    request_payload.pop("user_id", None)
    job = await repo.create_job(payload.user_id, request_payload)
    dispatch_plan_job(background_tasks, job.id, payload.user_id)
    return JobScheduledResponse(message="Job scheduled", job_id=job.id, status=job.status)


@router.get("", response_model=JobStatusResponse)
async def get_job_status(
    job_id: UUID = Query(..., description="Plan generation job UUID"),
    repo: PlanJobRepository = Depends(get_plan_job_repository),
) -> JobStatusResponse:
    """Trạng thái job: status, progress, completed_at, error, result."""
    job = await repo.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return JobStatusResponse(
        id=job.id,
        status=job.status,
        progress=job.progress_data,
        completed_at=job.completed_at,
        error=job.error_message,
        result=job.result_payload,
    )


@router.put("", response_model=JobRetryResponse)
async def put_retry_job(
    payload: JobRetryRequest,
    background_tasks: BackgroundTasks,
    repo: PlanJobRepository = Depends(get_plan_job_repository),
) -> JobRetryResponse:
    """
    Chạy lại job đã complete/failed: reset về queued (xóa error/result) rồi dispatch.
    Các ngày job đã lưu được giữ lại và bỏ qua khi chạy lại (PLAN_JOB_RESUME_SAVED_DAYS).
    """
    try:
        job = await repo.reset_for_retry(payload.job_id)
    except ValueError as e:
        if str(e) == "job_not_found":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        if str(e) == "job_in_progress":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Job is still running and cannot be retried yet",
            )
        raise
    user_id = payload.user_id or job.user_id
    dispatch_plan_job(background_tasks, job.id, user_id)
    return JobRetryResponse(message="Worker triggered", job_id=job.id)
