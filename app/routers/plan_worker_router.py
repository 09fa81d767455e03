"""Worker trigger: POST {job_id, user_id} -> chạy orchestrator tới complete | failed."""
from fastapi import APIRouter, Depends, HTTPException, status

from app.logging_config import get_logger
from app.routers.deps import get_plan_orchestrator
from app.schemas.plan_jobs import JobStatusEnum, WorkerTriggerRequest, WorkerTriggerResponse
from app.services.errors import PlanJobFailed
from app.services.plan_generation_service import PlanGenerationOrchestrator

router = APIRouter(prefix="/api/workers", tags=["workers"])
logger = get_logger(__name__)


@router.post("/generate-plan", response_model=WorkerTriggerResponse)
async def post_generate_plan(
    payload: WorkerTriggerRequest,
    orchestrator: PlanGenerationOrchestrator = Depends(get_plan_orchestrator),
) -> WorkerTriggerResponse:
    """
    Chạy job đồng bộ. complete và failed đều trả 200 (success=true); kết quả chi tiết nằm ở job row.
    404 khi job không tồn tại, 409 khi job không còn ở trạng thái queued.
    """
    logger.info("plan_worker.received", job_id=str(payload.job_id), user_id=str(payload.user_id))
    try:
        await orchestrator.run(payload.job_id, payload.user_id)
    except PlanJobFailed as e:
        return WorkerTriggerResponse(
            job_id=payload.job_id,
            status=JobStatusEnum.FAILED.value,
            error=e.message,
        )
    except ValueError as e:
        if str(e) == "job_not_found":
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
        if str(e) == "job_not_queued":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Job is not queued (already running or finished)",
            )
        raise
    return WorkerTriggerResponse(job_id=payload.job_id, status=JobStatusEnum.COMPLETE.value)
