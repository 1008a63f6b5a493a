"""CodeFlex Coach Data Models.

This module contains dataclasses for conversation and plan state.

Models:
    FitnessProfile: The nine fitness facts collected from one user.
    ConversationContext: Per-conversation state (profile, transcript, status).
    TrackerState: Enum for the conversation's progress towards a plan.
    GeneratedPlan: Sanitized workout and diet plan.
"""
from models.profile import FitnessProfile, PROFILE_FIELDS
from models.plan import (
    GeneratedPlan,
    WorkoutPlan,
    ExerciseDay,
    Routine,
    DietPlan,
    Meal,
)
from models.session import ConversationContext, TrackerState

__all__ = [
    "FitnessProfile",
    "PROFILE_FIELDS",
    "GeneratedPlan",
    "WorkoutPlan",
    "ExerciseDay",
    "Routine",
    "DietPlan",
    "Meal",
    "ConversationContext",
    "TrackerState",
]
