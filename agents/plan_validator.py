"""PlanResponseValidator - Coerces LLM Output into the Stored Plan Shape

The generator is asked for strict JSON, but it does not always comply:
"reps": "to failure", "dailyCalories": "about 2200", missing lists.
Nothing non-numeric may reach storage in a numeric field, so every value is
checked here and replaced with a default when it is missing or mistyped.
Each substitution is logged and counted, since it means the upstream
output drifted from the schema.
"""
from typing import Any, Dict, List, Optional
import logging

from core.observability import metrics
from models.plan import (
    GeneratedPlan,
    WorkoutPlan,
    ExerciseDay,
    Routine,
    DietPlan,
    Meal,
    DEFAULT_SETS,
    DEFAULT_REPS,
    DEFAULT_DAILY_CALORIES,
)

logger = logging.getLogger(__name__)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value == value


class PlanResponseValidator:
    """Sanitizes raw workout/diet objects; never raises on bad content."""

    def sanitize(self, raw_workout: Any, raw_diet: Any) -> GeneratedPlan:
        return GeneratedPlan(
            workout_plan=self.sanitize_workout(raw_workout),
            diet_plan=self.sanitize_diet(raw_diet),
        )

    # === Workout ===

    def sanitize_workout(self, raw: Any) -> WorkoutPlan:
        raw = self._as_object(raw, "workoutPlan")
        schedule = self._as_list(raw.get("schedule"), "workoutPlan.schedule")
        days = self._as_list(raw.get("exercises"), "workoutPlan.exercises")

        return WorkoutPlan(
            schedule=schedule,
            exercises=[self._sanitize_day(day) for day in self._objects(days, "workoutPlan.exercises")],
        )

    def _sanitize_day(self, raw: Dict[str, Any]) -> ExerciseDay:
        routines = self._as_list(raw.get("routines"), "exercises.routines")
        return ExerciseDay(
            day=raw.get("day"),
            routines=[self._sanitize_routine(r) for r in self._objects(routines, "exercises.routines")],
        )

    def _sanitize_routine(self, raw: Dict[str, Any]) -> Routine:
        return Routine(
            name=raw.get("name"),
            sets=self._number(raw.get("sets"), DEFAULT_SETS, "routine.sets"),
            reps=self._number(raw.get("reps"), DEFAULT_REPS, "routine.reps"),
            duration=raw.get("duration"),
            description=raw.get("description"),
            exercises=raw.get("exercises"),
        )

    # === Diet ===

    def sanitize_diet(self, raw: Any) -> DietPlan:
        raw = self._as_object(raw, "dietPlan")
        meals = self._as_list(raw.get("meals"), "dietPlan.meals")
        return DietPlan(
            daily_calories=self._number(raw.get("dailyCalories"), DEFAULT_DAILY_CALORIES,
                                        "dietPlan.dailyCalories"),
            meals=[self._sanitize_meal(m) for m in self._objects(meals, "dietPlan.meals")],
        )

    def _sanitize_meal(self, raw: Dict[str, Any]) -> Meal:
        return Meal(
            name=raw.get("name"),
            foods=self._as_list(raw.get("foods"), "meal.foods"),
        )

    # === Coercion helpers ===

    def _number(self, value: Any, default: int, path: str):
        if is_number(value):
            return value
        self._defaulted(path, value, default)
        return default

    def _as_list(self, value: Any, path: str) -> List[Any]:
        if isinstance(value, list):
            return value
        self._defaulted(path, value, [])
        return []

    def _as_object(self, value: Any, path: str) -> Dict[str, Any]:
        if isinstance(value, dict):
            return value
        self._defaulted(path, value, {})
        return {}

    def _objects(self, items: List[Any], path: str) -> List[Dict[str, Any]]:
        kept = [item for item in items if isinstance(item, dict)]
        if len(kept) != len(items):
            logger.warning(f"Dropped {len(items) - len(kept)} non-object entries from {path}")
            metrics.record_default(path)
        return kept

    @staticmethod
    def _defaulted(path: str, value: Optional[Any], default: Any):
        logger.warning(f"Upstream schema drift at {path}: {value!r} -> default {default!r}")
        metrics.record_default(path)
