from typing import Dict, List, Any, Optional
from dataclasses import dataclass, fields, replace

# Canonical field order: extraction, completion counting and user messages
PROFILE_FIELDS = (
    "age",
    "height",
    "weight",
    "fitness_level",
    "fitness_goal",
    "workout_days",
    "injuries",
    "dietary_restrictions",
    "activity_level",
)

# Python attribute -> wire key used by the form payload, prompts and storage
WIRE_KEYS = {
    "age": "age",
    "height": "height",
    "weight": "weight",
    "fitness_level": "fitnessLevel",
    "fitness_goal": "fitnessGoal",
    "workout_days": "workoutDays",
    "injuries": "injuries",
    "dietary_restrictions": "dietaryRestrictions",
    "activity_level": "activityLevel",
}

NONE_SENTINEL = "None"

FITNESS_LEVELS = ("beginner", "intermediate", "advanced")
FITNESS_GOALS = ("weight loss", "muscle gain", "endurance", "strength", "flexibility")
ACTIVITY_LEVELS = ("sedentary", "lightly active", "moderately active", "very active")


@dataclass
class FitnessProfile:
    """What we know about the user so far. None means not collected yet."""
    age: Optional[int] = None                    # 10-100
    height: Optional[str] = None                 # e.g. 5'8" or 172 cm
    weight: Optional[str] = None                 # e.g. 70 kg
    fitness_level: Optional[str] = None          # FITNESS_LEVELS
    fitness_goal: Optional[str] = None           # FITNESS_GOALS
    workout_days: Optional[int] = None           # 1-7 per week
    injuries: Optional[str] = None               # raw description or "None"
    dietary_restrictions: Optional[str] = None   # raw description or "None"
    activity_level: Optional[str] = None         # ACTIVITY_LEVELS

    def is_set(self, name: str) -> bool:
        value = getattr(self, name)
        return value is not None and value != ""

    @property
    def filled_fields(self) -> List[str]:
        return [name for name in PROFILE_FIELDS if self.is_set(name)]

    @property
    def missing_fields(self) -> List[str]:
        return [name for name in PROFILE_FIELDS if not self.is_set(name)]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    def copy(self, **changes) -> "FitnessProfile":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase keys), unset fields omitted."""
        return {WIRE_KEYS[f.name]: getattr(self, f.name) for f in fields(self) if self.is_set(f.name)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FitnessProfile":
        """Accepts both camelCase (fitnessGoal) and snake_case (fitness_goal) keys."""
        values = {}
        for name in PROFILE_FIELDS:
            value = data.get(WIRE_KEYS[name])
            if value is None or value == "":
                value = data.get(name)
            if value is not None and value != "":
                values[name] = value
        return cls(**values)
