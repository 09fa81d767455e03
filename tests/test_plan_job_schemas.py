"""
Minimal tests for plan job / day plan schema validation.
ScheduleWeekRequest: start_date YYYY-MM-DD, schedule 1..7 ngày, focus không rỗng.
DayPlanResponse: exercises không rỗng, macros bắt buộc.
"""
from datetime import date

import pytest
from pydantic import ValidationError

from app.schemas.day_plan import DayPlanResponse
from app.schemas.plan_jobs import ProgressData, ScheduleDay, ScheduleWeekRequest


def test_schedule_request_accepts_camel_and_snake_case() -> None:
    schedule = [{"day": "Monday", "focus": "Push"}]
    a = ScheduleWeekRequest.model_validate({"startDate": "2024-02-28", "schedule": schedule})
    b = ScheduleWeekRequest.model_validate({"start_date": "2024-02-28", "schedule": schedule})

    assert a.start_date == b.start_date == date(2024, 2, 28)
    assert a.to_payload() == {"start_date": "2024-02-28", "schedule": schedule}


@pytest.mark.parametrize("value", ["2024-2-28", "28-02-2024", "2024/02/28", "2024-02-28T00:00:00", 20240228])
def test_schedule_request_rejects_non_iso_start_date(value) -> None:
    with pytest.raises(ValidationError):
        ScheduleWeekRequest.model_validate({"start_date": value, "schedule": [{"day": "Monday", "focus": "Push"}]})


def test_schedule_request_rejects_impossible_date() -> None:
    with pytest.raises(ValidationError):
        ScheduleWeekRequest.model_validate({"start_date": "2023-02-29", "schedule": [{"day": "Monday", "focus": "Push"}]})


def test_schedule_length_bounds() -> None:
    day = {"day": "Monday", "focus": "Push"}
    with pytest.raises(ValidationError):
        ScheduleWeekRequest.model_validate({"start_date": "2024-01-01", "schedule": []})
    with pytest.raises(ValidationError):
        ScheduleWeekRequest.model_validate({"start_date": "2024-01-01", "schedule": [day] * 8})
    assert len(ScheduleWeekRequest.model_validate({"start_date": "2024-01-01", "schedule": [day] * 7}).schedule) == 7


def test_schedule_day_strips_focus() -> None:
    assert ScheduleDay(day="Friday", focus="  Legs ").focus == "Legs"
    with pytest.raises(ValidationError):
        ScheduleDay(day="Friday", focus="   ")
    with pytest.raises(ValidationError):
        ScheduleDay(day="friday", focus="Legs")


def test_progress_data_rejects_negative() -> None:
    with pytest.raises(ValidationError):
        ProgressData(current_day=-1, total_days=3)


def test_day_plan_response_valid(day_plan_factory) -> None:
    parsed = DayPlanResponse.model_validate(day_plan_factory("Pull"))
    assert parsed.workout.exercises[0].sets == 4
    assert parsed.macros.calories == 2400


def test_day_plan_response_requires_positive_sets(day_plan_factory) -> None:
    plan = day_plan_factory()
    plan["workout"]["exercises"][0]["sets"] = 0
    with pytest.raises(ValidationError):
        DayPlanResponse.model_validate(plan)


def test_day_plan_response_cardio_rpe_range(day_plan_factory) -> None:
    plan = day_plan_factory()
    plan["workout"]["cardio"] = {"mode": "Rowing", "target_time_min": 15, "target_rpe": 11}
    with pytest.raises(ValidationError):
        DayPlanResponse.model_validate(plan)
    plan["workout"]["cardio"]["target_rpe"] = 7
    assert DayPlanResponse.model_validate(plan).workout.cardio.mode == "Rowing"
