"""Error taxonomy for plan generation jobs."""
from uuid import UUID


class PlanGenerationError(Exception):
    """Base class for plan generation failures."""


class MissingPrerequisiteError(PlanGenerationError):
    """Profile hoặc user record không tồn tại: job fail, không xử lý ngày nào."""


class UpstreamServiceError(PlanGenerationError):
    """LLM trả non-2xx, lỗi mạng hoặc content rỗng. Fatal cho cả job."""


class MalformedResponseError(PlanGenerationError):
    """Response không phải JSON hợp lệ (kể cả sau fallback) hoặc thiếu field bắt buộc."""


class PlanPersistenceError(PlanGenerationError):
    """Upsert một ngày thất bại. Không fatal: ngày đó chỉ bị bỏ khỏi savedDays."""


class PlanJobFailed(PlanGenerationError):
    """Raised after the job row has been marked failed; the original error is chained as __cause__."""

    def __init__(self, job_id: UUID, message: str) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.message = message
