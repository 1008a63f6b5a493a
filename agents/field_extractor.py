"""FieldExtractor - Best-Effort Profile Extraction from Voice Transcripts

Philosophy:
    The voice assistant asks the questions; we just listen.
    Every final user utterance is scanned for any of the nine profile
    fields that are still missing. Once a field is known it is never
    overwritten by a later utterance (first match wins).

Design Decisions:
    1. Rule Tables: each field has an ordered list of rules. The first rule
       that matches AND is plausible sets the field; later rules are skipped.
    2. Plausibility Checks: numbers outside human ranges are ignored
       (age 10-100, weight 30-500, workout days 1-7) so unrelated numbers
       in the same sentence do not leak into the wrong field.
    3. Keyword Categories: enum-like fields use keyword containment tested
       in a fixed category order.
    4. Verbatim Free Text: injuries and dietary restrictions keep the
       user's own words; only explicit "none" answers become "None".
    5. Pure Function: extract() returns an updated copy and does no I/O.
"""
from typing import Any, Callable, Dict, List, Optional, Sequence
from dataclasses import dataclass
import re
import logging

from models.profile import FitnessProfile, PROFILE_FIELDS, NONE_SENTINEL

logger = logging.getLogger(__name__)

HEIGHT_CONTEXT_KEYWORDS = ["height", "tall", "foot", "feet", "inch", "cm"]

WEIGHT_UNITS = r"(?:kilograms?|kgs?|lbs?|pounds?)\b"

FITNESS_LEVEL_KEYWORDS = {
    "beginner": ["beginner", "beginning"],
    "intermediate": ["intermediate", "medium"],
    "advanced": ["advanced", "expert"],
}

# Tested in this order; the first category with a hit wins
FITNESS_GOAL_KEYWORDS = {
    "weight loss": ["weight loss", "lose weight", "slim down"],
    "muscle gain": ["muscle gain", "build muscle", "get stronger"],
    "endurance": ["endurance", "stamina", "cardio"],
    "strength": ["strength", "power"],
    "flexibility": ["flexibility", "mobility", "stretching"],
}

ACTIVITY_LEVEL_KEYWORDS = {
    "sedentary": ["sedentary", "desk job", "mostly sitting"],
    "lightly active": ["lightly active", "some walking", "occasional exercise", "slightly"],
    "moderately active": ["moderately active", "regular exercise", "active lifestyle", "moderate"],
    "very active": ["very active", "intense exercise", "athlete"],
}

INJURY_NONE_KEYWORDS = ["none", "no injuries", "no limitations", "no conditions", "no pain", "nothing"]
INJURY_KEYWORDS = ["injury", "pain", "limitation", "condition", "hurt", "sore"]

DIETARY_NONE_KEYWORDS = ["none", "no restrictions", "no dietary restrictions", "nothing", "no allergies"]
DIETARY_KEYWORDS = ["vegetarian", "vegan", "gluten", "dairy", "allergy", "intolerant"]


@dataclass(frozen=True)
class FieldRule:
    """One way of reading a field out of an utterance.

    ``match`` receives the raw transcript and returns the value to store,
    or None when the rule does not apply (no match or implausible).
    """
    name: str
    match: Callable[[str], Optional[Any]]

    def __call__(self, transcript: str) -> Optional[Any]:
        return self.match(transcript)


# === Rule builders ===

def _ranged_number(name: str, pattern: str, low: float, high: float,
                   keep_text: bool = False) -> FieldRule:
    """Number captured by the ``num`` group, accepted only within [low, high].

    The range check uses the whole-number part, so "500.5 pounds" passes.

    With keep_text the stored value is the ``text`` group (number + unit),
    otherwise the integer itself.
    """
    regex = re.compile(pattern, re.IGNORECASE)

    def match(transcript: str) -> Optional[Any]:
        m = regex.search(transcript)
        if not m:
            return None
        number = int(float(m.group("num")))
        if not low <= number <= high:
            logger.debug(f"Rejected {name}: {m.group(0)!r} outside {low}-{high}")
            return None
        if keep_text:
            return m.group("text")
        return number

    return FieldRule(name, match)


def _feet_inches(name: str, pattern: str, require_context: bool = False) -> FieldRule:
    regex = re.compile(pattern, re.IGNORECASE)

    def match(transcript: str) -> Optional[str]:
        m = regex.search(transcript)
        if not m:
            return None
        feet, inches = int(m.group(1)), int(m.group(2))
        if feet > 8 or inches > 12:
            return None
        if require_context:
            lower = transcript.lower()
            if not any(kw in lower for kw in HEIGHT_CONTEXT_KEYWORDS):
                return None
        return f"{feet}'{inches}\""

    return FieldRule(name, match)


def _matched_text(name: str, pattern: str) -> FieldRule:
    regex = re.compile(pattern, re.IGNORECASE)

    def match(transcript: str) -> Optional[str]:
        m = regex.search(transcript)
        return m.group(0) if m else None

    return FieldRule(name, match)


def _keywords(value: Any, keywords: Sequence[str]) -> FieldRule:
    def match(transcript: str) -> Optional[Any]:
        lower = transcript.lower()
        return value if any(kw in lower for kw in keywords) else None

    return FieldRule(f"keywords:{value}", match)


def _all_keywords(value: Any, keywords: Sequence[str]) -> FieldRule:
    def match(transcript: str) -> Optional[Any]:
        lower = transcript.lower()
        return value if all(kw in lower for kw in keywords) else None

    return FieldRule(f"all_keywords:{value}", match)


def _verbatim(name: str, keywords: Sequence[str]) -> FieldRule:
    """Store the whole utterance when any keyword appears in it."""
    def match(transcript: str) -> Optional[str]:
        lower = transcript.lower()
        return transcript if any(kw in lower for kw in keywords) else None

    return FieldRule(name, match)


def _category_rules(table: Dict[str, List[str]]) -> List[FieldRule]:
    return [_keywords(value, keywords) for value, keywords in table.items()]


# === Field rule tables (ordered by priority) ===

FIELD_RULES: Dict[str, List[FieldRule]] = {
    "age": [
        _ranged_number("age:years_old", r"(?P<num>\d+)\s*(?:years?\s*old|y\.?o\b\.?|age)", 10, 100),
        _ranged_number("age:age_is", r"age\s*(?:is\s*)?(?P<num>\d+)", 10, 100),
        _ranged_number("age:years", r"(?P<num>\d+)\s*years?\b", 10, 100),
        _ranged_number("age:bare", r"^\s*(?P<num>\d+)\s*[.!?]?\s*$", 10, 100),
        _ranged_number("age:trailing", r"(?P<num>\d+)\s*[.!?]?\s*$", 10, 100),
    ],
    "height": [
        _feet_inches("height:feet_inches",
                     r"(\d+)\s*(?:foot|feet|ft\b|')\s*(\d+)\s*(?:inch(?:es)?\b|in\b|\")?"),
        _feet_inches("height:pair", r"(\d+)\s+(\d+)", require_context=True),
        _matched_text("height:unit",
                      r"\d+(?:\.\d+)?\s*(?:(?:cm|centimet(?:er|re)s?|feet|foot|ft|inch(?:es)?|in)\b|'|\")"),
    ],
    "weight": [
        _ranged_number("weight:unit", rf"(?P<text>(?P<num>\d+(?:\.\d+)?)\s*{WEIGHT_UNITS})", 30, 500,
                       keep_text=True),
        _ranged_number("weight:weight_is",
                       rf"weight\s*(?:is\s*)?(?P<text>(?P<num>\d+(?:\.\d+)?)\s*{WEIGHT_UNITS})",
                       30, 500, keep_text=True),
        _ranged_number("weight:weighs", r"(?P<text>(?P<num>\d+(?:\.\d+)?))\s*(?:weight|weighs?)\b", 30, 500,
                       keep_text=True),
    ],
    "fitness_level": _category_rules(FITNESS_LEVEL_KEYWORDS),
    "fitness_goal": _category_rules(FITNESS_GOAL_KEYWORDS),
    "workout_days": [
        _ranged_number("workout_days", r"(?P<num>\d+)\s*(?:days?\b|times?\b|per week)", 1, 7),
    ],
    "injuries": [
        _keywords(NONE_SENTINEL, INJURY_NONE_KEYWORDS),
        _verbatim("injuries:described", INJURY_KEYWORDS),
    ],
    "dietary_restrictions": [
        _keywords(NONE_SENTINEL, DIETARY_NONE_KEYWORDS),
        _verbatim("dietary_restrictions:described", DIETARY_KEYWORDS),
    ],
    "activity_level": _category_rules(ACTIVITY_LEVEL_KEYWORDS) + [
        _all_keywords("very active", ["7", "active"]),
    ],
}


class FieldExtractor:
    """Fills missing profile fields from one transcript at a time."""

    def __init__(self, rules: Optional[Dict[str, List[FieldRule]]] = None):
        self.rules = rules or FIELD_RULES

    def extract(self, profile: FitnessProfile, transcript: str) -> FitnessProfile:
        """Return a copy of ``profile`` with any newly recognised fields set.

        Fields that are already set are never touched. A field with no
        matching rule simply stays unset.
        """
        if not transcript or not transcript.strip():
            return profile.copy()

        updates = {}
        for field_name in PROFILE_FIELDS:
            if profile.is_set(field_name):
                continue
            value = self.extract_field(field_name, transcript)
            if value is not None:
                updates[field_name] = value

        if updates:
            logger.debug(f"Extracted from {transcript!r}: {updates}")
        return profile.copy(**updates)

    def extract_field(self, field_name: str, transcript: str) -> Optional[Any]:
        """Run one field's rules in order; first plausible match wins."""
        for rule in self.rules.get(field_name, []):
            value = rule(transcript)
            if value is not None:
                logger.debug(f"✓ {field_name} via {rule.name}: {value!r}")
                return value
        return None
