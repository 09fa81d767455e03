"""Pydantic request/response schemas."""
from app.schemas.day_plan import DayPlanResponse, ExerciseOut, MacroTargets, WorkoutBlock
from app.schemas.personalized_plans import (
    PersonalizedPlanListResponse,
    PersonalizedPlanOut,
    PlanCompletionRequest,
    PlanDeleteResponse,
)
from app.schemas.plan_jobs import (
    JobRetryRequest,
    JobRetryResponse,
    JobScheduledResponse,
    JobStatusEnum,
    JobStatusResponse,
    PlanJobCreateRequest,
    ProgressData,
    ScheduleDay,
    ScheduleWeekRequest,
    WorkerTriggerRequest,
    WorkerTriggerResponse,
)

__all__ = [
    "DayPlanResponse",
    "ExerciseOut",
    "MacroTargets",
    "WorkoutBlock",
    "PersonalizedPlanListResponse",
    "PersonalizedPlanOut",
    "PlanCompletionRequest",
    "PlanDeleteResponse",
    "JobRetryRequest",
    "JobRetryResponse",
    "JobScheduledResponse",
    "JobStatusEnum",
    "JobStatusResponse",
    "PlanJobCreateRequest",
    "ProgressData",
    "ScheduleDay",
    "ScheduleWeekRequest",
    "WorkerTriggerRequest",
    "WorkerTriggerResponse",
]
