"""Generated plan shapes.

The example objects below are embedded verbatim in the generation prompts,
and PlanResponseValidator coerces every upstream response into the same
shape, so prompt and sanitizer cannot drift apart.
"""
from typing import Dict, List, Any, Optional, Union
from dataclasses import dataclass, field

Number = Union[int, float]

DEFAULT_SETS = 3
DEFAULT_REPS = 10
DEFAULT_DAILY_CALORIES = 2000

WORKOUT_PLAN_EXAMPLE = {
    "schedule": ["Monday", "Wednesday", "Friday"],
    "exercises": [
        {
            "day": "Monday",
            "routines": [
                {"name": "Exercise Name", "sets": 3, "reps": 10}
            ],
        }
    ],
}

DIET_PLAN_EXAMPLE = {
    "dailyCalories": 2000,
    "meals": [
        {"name": "Breakfast", "foods": ["Oatmeal with berries", "Greek yogurt", "Black coffee"]},
        {"name": "Lunch", "foods": ["Grilled chicken salad", "Whole grain bread", "Water"]},
    ],
}


@dataclass
class Routine:
    name: Optional[str]
    sets: Number = DEFAULT_SETS
    reps: Number = DEFAULT_REPS
    duration: Optional[str] = None
    description: Optional[str] = None
    exercises: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "sets": self.sets, "reps": self.reps}
        # Optional fields only appear when the generator supplied them
        for key in ("duration", "description", "exercises"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class ExerciseDay:
    day: Optional[str]
    routines: List[Routine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day, "routines": [r.to_dict() for r in self.routines]}


@dataclass
class WorkoutPlan:
    schedule: List[str] = field(default_factory=list)
    exercises: List[ExerciseDay] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schedule": list(self.schedule),
            "exercises": [d.to_dict() for d in self.exercises],
        }


@dataclass
class Meal:
    name: Optional[str]
    foods: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "foods": list(self.foods)}


@dataclass
class DietPlan:
    daily_calories: Number = DEFAULT_DAILY_CALORIES
    meals: List[Meal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"dailyCalories": self.daily_calories, "meals": [m.to_dict() for m in self.meals]}


@dataclass
class GeneratedPlan:
    """Sanitized workout + diet output, ready to be stored and displayed."""
    workout_plan: WorkoutPlan = field(default_factory=WorkoutPlan)
    diet_plan: DietPlan = field(default_factory=DietPlan)

    def to_dict(self) -> Dict[str, Any]:
        return {"workoutPlan": self.workout_plan.to_dict(), "dietPlan": self.diet_plan.to_dict()}
