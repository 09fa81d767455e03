"""SQLAlchemy models for the plan generation service."""
from app.models.user import User
from app.models.fitness_profile import UserFitnessProfile
from app.models.user_goal import UserGoal
from app.models.workout_session import WorkoutSession
from app.models.plan_generation_job import PlanGenerationJob
from app.models.personalized_plan import PLAN_TYPE_WORKOUT, PersonalizedPlan

__all__ = [
    "User",
    "UserFitnessProfile",
    "UserGoal",
    "WorkoutSession",
    "PlanGenerationJob",
    "PersonalizedPlan",
    "PLAN_TYPE_WORKOUT",
]
