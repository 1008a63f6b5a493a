"""PlanRequestGate - Last Check Before a Plan Is Requested

Modes:
    FULL:    all nine fields came from the conversation; nothing to fill in.
    PARTIAL: 7-8 fields; age and injuries get safe defaults if missing.
    MANUAL:  values typed into the form; no defaults, ranges re-checked,
             the user is asked to correct anything invalid.
"""
from enum import Enum
from typing import Optional
import logging

from core.exceptions import MissingFieldsError, OutOfRangeError
from models.profile import FitnessProfile, PROFILE_FIELDS, WIRE_KEYS, NONE_SENTINEL

logger = logging.getLogger(__name__)

PARTIAL_DEFAULTS = {
    "age": 25,
    "injuries": NONE_SENTINEL,
}

# Without these the generation prompts cannot be filled in
GENERATION_REQUIRED_FIELDS = (
    "age",
    "height",
    "weight",
    "fitness_goal",
    "fitness_level",
    "workout_days",
)

RANGE_LIMITS = {
    "age": (10, 100),
    "workout_days": (1, 7),
}


class GateMode(Enum):
    FULL = "full"
    PARTIAL = "partial"
    MANUAL = "manual"


class PlanRequestGate:
    """Validates a profile and returns the copy that should be sent upstream."""

    def __init__(self, partial_threshold: int = 7):
        self.partial_threshold = partial_threshold

    def infer_mode(self, profile: FitnessProfile) -> GateMode:
        count = len(profile.filled_fields)
        if count >= len(PROFILE_FIELDS):
            return GateMode.FULL
        if count >= self.partial_threshold:
            return GateMode.PARTIAL
        raise MissingFieldsError(
            profile.missing_fields,
            f"I need more information to generate your plan. Currently have "
            f"{count}/{len(PROFILE_FIELDS)} fields. Please provide: "
            f"{', '.join(WIRE_KEYS[name] for name in profile.missing_fields)}",
        )

    def validate(self, profile: FitnessProfile, mode: Optional[GateMode] = None) -> FitnessProfile:
        """Return a validated copy of ``profile``; the input is never mutated.

        Raises:
            MissingFieldsError: required fields are still unset.
            OutOfRangeError: (manual mode) age or workout days out of range.
        """
        if mode is None:
            mode = self.infer_mode(profile)

        validated = profile.copy()
        if mode == GateMode.PARTIAL:
            defaults = {k: v for k, v in PARTIAL_DEFAULTS.items() if not validated.is_set(k)}
            for name, value in defaults.items():
                logger.info(f"Using default {name}: {value}")
            validated = validated.copy(**defaults)

        missing = [name for name in GENERATION_REQUIRED_FIELDS if not validated.is_set(name)]
        if missing:
            raise MissingFieldsError(missing)

        if mode == GateMode.MANUAL:
            self._check_ranges(validated)

        return validated

    def _check_ranges(self, profile: FitnessProfile):
        for name, (low, high) in RANGE_LIMITS.items():
            value = getattr(profile, name)
            if not isinstance(value, int) or isinstance(value, bool) or not low <= value <= high:
                raise OutOfRangeError(name, value, low, high)
