"""Plan generation job request/response schemas."""
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

WeekdayName = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class JobStatusEnum(str, Enum):
    """Job lifecycle: queued -> checking_profile -> checking_previous_workouts -> creating_plan -> complete | failed."""

    QUEUED = "queued"
    CHECKING_PROFILE = "checking_profile"
    CHECKING_PREVIOUS_WORKOUTS = "checking_previous_workouts"
    CREATING_PLAN = "creating_plan"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatusEnum.COMPLETE.value, JobStatusEnum.FAILED.value})


class ScheduleDay(BaseModel):
    """Một dòng lịch: thứ trong tuần + focus (Push, Legs, Rest, ...)."""

    day: WeekdayName
    focus: str = Field(..., min_length=1, max_length=128)

    @field_validator("focus")
    @classmethod
    def focus_not_blank(cls, v: str) -> str:
        """Focus chỉ có khoảng trắng coi như rỗng."""
        v = v.strip()
        if not v:
            raise ValueError("focus must not be blank")
        return v


class ScheduleWeekRequest(BaseModel):
    """
    request_payload của job: start_date + schedule (1..7 ngày, theo thứ tự).
    Nhận cả startDate (camelCase từ frontend) lẫn start_date.
    """

    model_config = ConfigDict(populate_by_name=True)

    start_date: date = Field(..., alias="startDate", description="Ngày bắt đầu YYYY-MM-DD")
    schedule: List[ScheduleDay] = Field(..., min_length=1, max_length=7)

    @field_validator("start_date", mode="before")
    @classmethod
    def start_date_iso(cls, v: Any) -> Any:
        """Chỉ chấp nhận chuỗi YYYY-MM-DD (hoặc date)."""
        if isinstance(v, date):
            return v
        if not isinstance(v, str) or not ISO_DATE_RE.match(v):
            raise ValueError("start_date must be YYYY-MM-DD")
        return v

    def to_payload(self) -> Dict[str, Any]:
        """JSON lưu vào plan_generation_jobs.request_payload."""
        return self.model_dump(mode="json")


class PlanJobCreateRequest(ScheduleWeekRequest):
    """Body cho POST /api/personalized-plans/generate-from-data."""

    user_id: UUID = Field(..., description="User UUID")


class ProgressData(BaseModel):
    """progress_data: cập nhật trước mỗi ngày được xử lý."""

    current_day: int = Field(0, ge=0)
    total_days: int = Field(0, ge=0)
    current_week: int = Field(0, ge=0)
    total_weeks: int = Field(1, ge=0)
    current_focus: Optional[str] = None


class JobScheduledResponse(BaseModel):
    """Response 202 sau khi tạo job."""

    message: str
    job_id: UUID
    status: str


class JobStatusResponse(BaseModel):
    """Polling view: GET /api/personalized-plans/generate-from-data?job_id=..."""

    id: UUID
    status: str
    progress: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


class JobRetryRequest(BaseModel):
    """Body cho PUT: chạy lại job. user_id bỏ trống thì lấy từ job."""

    job_id: UUID
    user_id: Optional[UUID] = None


class JobRetryResponse(BaseModel):
    """Response sau khi trigger lại job."""

    message: str
    job_id: UUID


class WorkerTriggerRequest(BaseModel):
    """Trigger contract của worker: { job_id, user_id }."""

    job_id: UUID
    user_id: UUID


class WorkerTriggerResponse(BaseModel):
    """success=True cho cả complete lẫn failed; chỉ lỗi transport mới trả non-2xx."""

    success: bool = True
    job_id: UUID
    status: str
    error: Optional[str] = None
