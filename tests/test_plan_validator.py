"""Unit Tests for PlanResponseValidator.

Upstream output drifts from the requested schema; nothing non-numeric may
reach storage in sets, reps or dailyCalories.
"""
import pytest

from agents.plan_validator import PlanResponseValidator, is_number
from core.observability import metrics
from models.plan import GeneratedPlan
from conftest import VALID_WORKOUT, VALID_DIET


@pytest.fixture
def validator():
    return PlanResponseValidator()


class TestWorkoutSanitizing:

    def test_valid_workout_is_preserved(self, validator):
        plan = validator.sanitize_workout(VALID_WORKOUT)
        assert plan.to_dict() == VALID_WORKOUT

    def test_missing_sets_and_reps_get_defaults(self, validator):
        raw = {"schedule": ["Monday"], "exercises": [
            {"day": "Monday", "routines": [{"name": "Plank", "duration": "60 seconds"}]}
        ]}
        routine = validator.sanitize_workout(raw).exercises[0].routines[0]
        assert (routine.name, routine.sets, routine.reps) == ("Plank", 3, 10)
        assert routine.duration == "60 seconds"

    def test_descriptive_sets_and_reps_are_replaced(self, validator):
        raw = {"schedule": ["Tuesday"], "exercises": [
            {"day": "Tuesday", "routines": [{"name": "Plank", "sets": "hold", "reps": "to failure"}]}
        ]}
        routine = validator.sanitize_workout(raw).exercises[0].routines[0]
        assert routine.to_dict() == {"name": "Plank", "sets": 3, "reps": 10}

    def test_text_reps_are_replaced(self, validator):
        raw = {"schedule": [], "exercises": [
            {"day": "Friday", "routines": [{"name": "Push-ups", "sets": "3", "reps": "to failure"}]}
        ]}
        routine = validator.sanitize_workout(raw).exercises[0].routines[0]
        assert routine.sets == 3
        assert routine.reps == 10

    def test_booleans_are_not_numbers(self, validator):
        raw = {"exercises": [{"day": "Monday", "routines": [{"name": "Row", "sets": True, "reps": 12}]}]}
        routine = validator.sanitize_workout(raw).exercises[0].routines[0]
        assert routine.sets == 3
        assert routine.reps == 12

    def test_float_values_are_kept(self, validator):
        raw = {"exercises": [{"day": "Monday", "routines": [{"name": "Run", "sets": 1, "reps": 2.5}]}]}
        assert validator.sanitize_workout(raw).exercises[0].routines[0].reps == 2.5

    def test_missing_lists_become_empty(self, validator):
        plan = validator.sanitize_workout({})
        assert plan.schedule == []
        assert plan.exercises == []

    def test_non_object_entries_are_dropped(self, validator):
        raw = {"schedule": ["Monday"], "exercises": ["Monday: squats", {"day": "Monday"}]}
        plan = validator.sanitize_workout(raw)
        assert len(plan.exercises) == 1
        assert plan.exercises[0].routines == []

    def test_extra_fields_are_not_stored(self, validator):
        raw = dict(VALID_WORKOUT, title="My Plan", notes="stretch daily")
        assert set(validator.sanitize_workout(raw).to_dict()) == {"schedule", "exercises"}


class TestDietSanitizing:

    def test_valid_diet_is_preserved(self, validator):
        assert validator.sanitize_diet(VALID_DIET).to_dict() == VALID_DIET

    @pytest.mark.parametrize("calories", ["a lot", "2200", None, float("nan")])
    def test_non_numeric_calories_get_default(self, validator, calories):
        plan = validator.sanitize_diet({"dailyCalories": calories, "meals": []})
        assert plan.daily_calories == 2000

    def test_supplements_and_macros_are_dropped(self, validator):
        raw = dict(VALID_DIET, supplements=["Creatine"], macros={"protein": 150})
        assert set(validator.sanitize_diet(raw).to_dict()) == {"dailyCalories", "meals"}

    def test_meal_without_foods(self, validator):
        plan = validator.sanitize_diet({"dailyCalories": 1800, "meals": [{"name": "Snack"}]})
        assert plan.meals[0].foods == []

    def test_non_object_diet(self, validator):
        plan = validator.sanitize_diet(["not", "an", "object"])
        assert plan.daily_calories == 2000
        assert plan.meals == []


class TestSanitizeBoth:

    def test_returns_generated_plan(self, validator):
        plan = validator.sanitize(VALID_WORKOUT, VALID_DIET)
        assert isinstance(plan, GeneratedPlan)
        assert plan.to_dict() == {"workoutPlan": VALID_WORKOUT, "dietPlan": VALID_DIET}

    def test_defaults_are_counted(self, validator):
        validator.sanitize({"exercises": [{"day": "Mon", "routines": [{"name": "Plank"}]}]},
                           {"dailyCalories": "a lot", "meals": []})
        defaults = metrics.summary()["schema_defaults"]
        assert defaults["routine.sets"] == 1
        assert defaults["routine.reps"] == 1
        assert defaults["dietPlan.dailyCalories"] == 1
        assert defaults["workoutPlan.schedule"] == 1

    def test_clean_plan_records_no_defaults(self, validator):
        validator.sanitize(VALID_WORKOUT, VALID_DIET)
        assert metrics.summary()["schema_defaults"] == {}


@pytest.mark.parametrize("value,expected", [
    (3, True), (2.5, True), (0, True), ("3", False), (True, False), (None, False), (float("nan"), False),
])
def test_is_number(value, expected):
    assert is_number(value) is expected
