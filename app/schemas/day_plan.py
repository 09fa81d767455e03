"""
Strict schema of a single-day plan returned by the LLM.
Dùng để validate trước khi chấp nhận; dict gốc vẫn được trả về nguyên vẹn.
"""
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _number_to_text(v: Any) -> Any:
    """reps/rest/weight là free-text ("8-12", "60s"); model đôi khi trả số."""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


FreeText = Annotated[str, BeforeValidator(_number_to_text)]


class ExerciseOut(BaseModel):
    """One exercise prescription."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    sets: int = Field(..., ge=1)
    reps: FreeText
    rest: Optional[FreeText] = None
    weight: Optional[FreeText] = None


class CardioBlock(BaseModel):
    """Optional cardio finisher."""

    model_config = ConfigDict(extra="allow")

    mode: str
    target_time_min: Optional[int] = Field(None, ge=0)
    target_rpe: Optional[int] = Field(None, ge=1, le=10)
    notes: Optional[str] = None


class WorkoutBlock(BaseModel):
    """workout object: date/dayName/focus/style/duration/warmup/cooldown/exercises/cardio."""

    model_config = ConfigDict(extra="allow")

    date: Optional[str] = None
    dayName: Optional[str] = None
    focus: Optional[str] = None
    style: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    warmup: Optional[str] = None
    cooldown: Optional[str] = None
    exercises: List[ExerciseOut] = Field(..., min_length=1)
    cardio: Optional[CardioBlock] = None


class MacroTargets(BaseModel):
    """Macro targets only: no meals or food items."""

    model_config = ConfigDict(extra="allow")

    calories: float = Field(..., ge=0)
    protein_g: float = Field(..., ge=0)
    carbs_g: float = Field(..., ge=0)
    fat_g: float = Field(..., ge=0)
    notes: Optional[str] = None


class DayPlanResponse(BaseModel):
    """Top-level LLM output: { "workout": {...}, "macros": {...} }."""

    model_config = ConfigDict(extra="allow")

    workout: WorkoutBlock
    macros: MacroTargets
