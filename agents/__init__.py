"""CodeFlex Coach Agent Module.

This module contains the components that turn a conversation into a plan.

Agents:
    FieldExtractor: Pattern-based profile extraction from transcripts.
    ProfileCompletionTracker: Decides when enough data has been collected.
    PlanRequestGate: Validates (and defaults) a profile before generation.
    PlanResponseValidator: Coerces LLM output into the stored plan shape.
    PlanGenerator: Workout and diet plan generation with Gemini.
"""
from agents.field_extractor import FieldExtractor
from agents.completion_tracker import ProfileCompletionTracker
from agents.plan_gate import PlanRequestGate, GateMode
from agents.plan_validator import PlanResponseValidator
from agents.plan_agent import PlanGenerator

__all__ = [
    "FieldExtractor",
    "ProfileCompletionTracker",
    "PlanRequestGate",
    "GateMode",
    "PlanResponseValidator",
    "PlanGenerator",
]
