"""
Day plan generator: một ngày tập = một lần gọi LLM.
Build prompt từ profile/history, parse JSON (fallback lấy block {...} cuối cùng), validate schema.
Không truy cập DB.
"""
import json
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.config import DEFAULT_DAILY_CALORIE_GOAL
from app.logging_config import get_logger
from app.models import User, UserFitnessProfile, UserGoal, WorkoutSession
from app.schemas.day_plan import DayPlanResponse
from app.schemas.plan_jobs import ScheduleDay
from app.services.errors import MalformedResponseError
from app.services.llm_service import LLMService

logger = get_logger(__name__)

OVERLOAD_DIRECTIVE = "Apply progressive overload: increase weight by 2.5-5kg or reps by 1-2."

SYSTEM_PROMPT = """You are an elite fitness coach. Generate ONLY the JSON for a single day's workout plan with macro suggestions.

Return JSON matching this exact schema:
{
  "workout": {
    "date": "YYYY-MM-DD",
    "dayName": "Monday",
    "focus": "string",
    "style": "Strength|Hypertrophy|Endurance|Circuit|HIIT|Recovery",
    "duration": <minutes>,
    "warmup": "string",
    "cooldown": "string",
    "exercises": [
      {
        "name": "string",
        "sets": <int>,
        "reps": "string (e.g., '8-12')",
        "rest": "string (e.g., '60s')",
        "weight": "string (optional)"
      }
    ],
    "cardio": {
      "mode": "Running|Cycling|Rowing|Stair Climber|Jump Rope",
      "target_time_min": <int>,
      "target_rpe": <1-10>,
      "notes": "string"
    } | null
  },
  "macros": {
    "calories": <int>,
    "protein_g": <int>,
    "carbs_g": <int>,
    "fat_g": <int>,
    "notes": "string (optional guidance on meal timing, pre/post workout nutrition)"
  }
}

IMPORTANT:
- Do NOT generate specific meals or food items
- Only provide macro targets (calories, protein, carbs, fat)
- Include brief notes about meal timing if relevant (e.g., "Prioritize protein post-workout")
- Macros should align with the workout intensity and user's goals

Return ONLY valid JSON, no markdown, no explanations."""


def plan_date_for(start_date: date, day_index: int) -> date:
    """start_date + day_index ngày (lịch thật, tự qua tháng/năm/năm nhuận)."""
    return start_date + timedelta(days=day_index)


def _join_list(value: Any, default: str) -> str:
    """JSONB list -> "a, b"; string giữ nguyên; rỗng -> default."""
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value if str(v).strip()]
        return ", ".join(items) if items else default
    if isinstance(value, str) and value.strip():
        return value
    return default


def _metric(value: Any) -> str:
    return "unknown" if value is None else f"{value}"


def build_user_prompt(
    profile: UserFitnessProfile,
    user_info: User,
    goals: Optional[UserGoal],
    day: ScheduleDay,
    plan_date: date,
    previous_workout: Optional[WorkoutSession],
    default_calorie_goal: int = DEFAULT_DAILY_CALORIE_GOAL,
) -> str:
    """User prompt cho một ngày. Block progressive overload chỉ có khi có previous_workout."""
    calorie_goal = (goals.daily_calorie_goal if goals else None) or default_calorie_goal
    lines: List[str] = [
        f"Generate a plan for {day.day}, {day.focus}.",
        "",
        "USER PROFILE:",
        f"- Height: {_metric(user_info.height)} cm",
        f"- Weight: {_metric(user_info.current_weight)} kg",
        f"- Fitness Level: {profile.fitness_level or 'beginner'}",
        f"- Primary Goals: {_join_list(profile.primary_goals, 'General Fitness')}",
        f"- Available Equipment: {_join_list(profile.available_equipment, 'Limited')}",
        f"- Workout Duration: {profile.workout_duration or 45} minutes",
        f"- Strength Levels: {json.dumps(profile.strength_levels or {}, ensure_ascii=False)}",
        f"- Injuries/Limitations: {profile.injuries_limitations or 'None'}",
        "",
    ]
    if previous_workout is not None:
        completed_at = previous_workout.completed_at.isoformat() if previous_workout.completed_at else "N/A"
        lines += [
            f"PREVIOUS {day.focus} WORKOUT (for Progressive Overload):",
            f"Date: {completed_at}",
            json.dumps(previous_workout.workout_content or {}, ensure_ascii=False),
            "",
            OVERLOAD_DIRECTIVE,
            "",
        ]
    lines += [
        "NUTRITION (MACROS ONLY - NO MEALS):",
        f"- Daily Calorie Goal: {calorie_goal} calories",
        "- Adjust macros based on workout intensity (higher carbs/protein on intense days)",
        "- Provide macro targets only, no specific meals or food items",
        "- Include brief notes on meal timing if relevant",
        "",
        "REQUIREMENTS:",
        f"- Date: {plan_date.isoformat()}",
        f"- Day: {day.day}",
        f"- Focus: {day.focus}",
    ]
    if previous_workout is not None:
        lines.append("- Progress every exercise from the previous workout above")
    lines += [
        "- Return workout plan with macro suggestions (no meals)",
        "- Return JSON ONLY.",
    ]
    return "\n".join(lines)


def _last_brace_block(text: str) -> Optional[str]:
    """Block {...} top-level cuối cùng trong text (bỏ qua ngoặc nằm trong chuỗi JSON)."""
    last: Optional[str] = None
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                last = text[start:i + 1]
    return last


def parse_day_plan(content: str) -> Dict[str, Any]:
    """
    Parse content thành dict và validate theo DayPlanResponse.
    1) json.loads trực tiếp; 2) fallback: block {...} cuối cùng.
    Raises MalformedResponseError; không bao giờ tự bịa dữ liệu mặc định.
    """
    text = (content or "").strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        block = _last_brace_block(text)
        if block is None:
            raise MalformedResponseError("AI did not return valid JSON")
        try:
            data = json.loads(block)
        except json.JSONDecodeError as e:
            raise MalformedResponseError("AI did not return valid JSON") from e
        logger.info("day_plan.json_fallback_used", raw_length=len(text))

    if not isinstance(data, dict):
        raise MalformedResponseError("AI response is not a JSON object")
    try:
        DayPlanResponse.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise MalformedResponseError(f"AI response failed schema validation: {', '.join(fields)}") from e
    return data


class DayPlanGenerator:
    """generate_day_plan(...) -> {"workout": {...}, "macros": {...}} (dict gốc, chưa tách field)."""

    def __init__(self, llm: LLMService, default_calorie_goal: int = DEFAULT_DAILY_CALORIE_GOAL) -> None:
        self.llm = llm
        self.default_calorie_goal = default_calorie_goal

    async def generate_day_plan(
        self,
        profile: UserFitnessProfile,
        user_info: User,
        goals: Optional[UserGoal],
        day: ScheduleDay,
        start_date: date,
        day_index: int,
        previous_workout: Optional[WorkoutSession],
    ) -> Dict[str, Any]:
        """Một lần gọi LLM cho ngày thứ day_index. Lỗi upstream/parse được raise nguyên cho orchestrator."""
        plan_date = plan_date_for(start_date, day_index)
        user_prompt = build_user_prompt(
            profile,
            user_info,
            goals,
            day,
            plan_date,
            previous_workout,
            default_calorie_goal=self.default_calorie_goal,
        )
        content, _usage = await self.llm.complete_json(SYSTEM_PROMPT, user_prompt, feature="plan_day")
        plan = parse_day_plan(content)
        logger.info(
            "day_plan.generated",
            plan_date=plan_date.isoformat(),
            focus=day.focus,
            exercises=len(plan["workout"].get("exercises") or []),
            progressive_overload=previous_workout is not None,
        )
        return plan
