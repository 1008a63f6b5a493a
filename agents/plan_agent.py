"""PlanGenerator - Workout and Diet Plans from Gemini

Two fixed prompts are sent per request: one for the workout plan, one for
the diet plan. Each demands a JSON object with exactly the fields of the
example shapes in models.plan, and each response is sanitized by
PlanResponseValidator before it goes anywhere else.

Design Decisions:
    1. JSON Mode: the model is configured with response_mime_type=application/json.
    2. Parse vs. Transport Failures: a response that is not a JSON object raises
       UpstreamParseError and is never retried; transport errors may be retried
       a bounded number of times (default 0, i.e. a failure is terminal).
    3. Explicit Timeout: every call carries a request timeout.
"""
from typing import Any, Dict, Optional
import json
import logging
import time

from google.api_core import exceptions as google_exceptions

from config.llm import get_gemini_model
from config.settings import (
    PLAN_GENERATION_TIMEOUT_SECONDS,
    PLAN_GENERATION_MAX_RETRIES,
    PLAN_RETRY_BASE_DELAY_SECONDS,
)
from agents.plan_validator import PlanResponseValidator
from core.exceptions import PlanGenerationError, UpstreamParseError
from core.observability import Tracer
from models.plan import GeneratedPlan, WORKOUT_PLAN_EXAMPLE, DIET_PLAN_EXAMPLE
from models.profile import FitnessProfile, NONE_SENTINEL

logger = logging.getLogger(__name__)


class PlanGenerator:
    """
    PLAN GENERATOR: turns a validated FitnessProfile into a GeneratedPlan.

    The model is injectable so tests (and alternative providers exposing
    generate_content) can stand in for Gemini.
    """

    def __init__(self, model=None, validator: Optional[PlanResponseValidator] = None,
                 timeout: float = PLAN_GENERATION_TIMEOUT_SECONDS,
                 max_retries: int = PLAN_GENERATION_MAX_RETRIES,
                 retry_base_delay: float = PLAN_RETRY_BASE_DELAY_SECONDS):
        self.model = model if model is not None else get_gemini_model()
        self.validator = validator or PlanResponseValidator()
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay

    def generate(self, profile: FitnessProfile) -> GeneratedPlan:
        """Request both plans and return the sanitized result.

        Raises:
            PlanGenerationError: no model configured, or the service failed.
            UpstreamParseError: a response was not a JSON object.
        """
        if not self.model:
            raise PlanGenerationError("Gemini API key not configured")

        with Tracer("WorkoutPlan", profile.fitness_goal):
            raw_workout = self._request_json(self.build_workout_prompt(profile), "workout plan")
        workout_plan = self.validator.sanitize_workout(raw_workout)

        with Tracer("DietPlan", profile.fitness_goal):
            raw_diet = self._request_json(self.build_diet_prompt(profile), "diet plan")
        diet_plan = self.validator.sanitize_diet(raw_diet)

        logger.info(
            f"PlanGenerator: {len(workout_plan.exercises)} training days, "
            f"{len(diet_plan.meals)} meals, {diet_plan.daily_calories} kcal"
        )
        return GeneratedPlan(workout_plan=workout_plan, diet_plan=diet_plan)

    # === Prompts ===

    def build_workout_prompt(self, profile: FitnessProfile) -> str:
        return f"""You are an experienced fitness coach creating a personalized workout plan based on:
Age: {profile.age}
Height: {profile.height}
Weight: {profile.weight}
Injuries or limitations: {profile.injuries or NONE_SENTINEL}
Available days for workout: {profile.workout_days}
Fitness goal: {profile.fitness_goal}
Fitness level: {profile.fitness_level}
Activity level: {profile.activity_level or 'Unknown'}

As a professional coach:
- Consider muscle group splits to avoid overtraining the same muscles on consecutive days
- Design exercises that match the fitness level and account for any injuries
- Structure the workouts to specifically target the user's fitness goal

CRITICAL SCHEMA INSTRUCTIONS:
- Your output MUST contain ONLY the fields specified below, NO ADDITIONAL FIELDS
- "sets" and "reps" MUST ALWAYS be NUMBERS, never strings
- For example: "sets": 3, "reps": 10
- Do NOT use text like "reps": "As many as possible" or "reps": "To failure"
- Instead use specific numbers like "reps": 12 or "reps": 15
- For cardio, use "sets": 1, "reps": 1 or another appropriate number
- NEVER include strings for numerical fields
- NEVER add extra fields not shown in the example below

Return a JSON object with this EXACT structure:
{json.dumps(WORKOUT_PLAN_EXAMPLE, indent=2)}

DO NOT add any fields that are not in this example. Your response must be a valid JSON object with no additional text."""

    def build_diet_prompt(self, profile: FitnessProfile) -> str:
        return f"""You are an experienced nutrition coach creating a personalized diet plan based on:
Age: {profile.age}
Height: {profile.height}
Weight: {profile.weight}
Fitness goal: {profile.fitness_goal}
Activity level: {profile.activity_level or 'Unknown'}
Dietary restrictions: {profile.dietary_restrictions or NONE_SENTINEL}

As a professional nutrition coach:
- Calculate appropriate daily calorie intake based on the person's stats and goals
- Create a balanced meal plan with proper macronutrient distribution
- Include a variety of nutrient-dense foods while respecting dietary restrictions
- Consider meal timing around workouts for optimal performance and recovery

CRITICAL SCHEMA INSTRUCTIONS:
- Your output MUST contain ONLY the fields specified below, NO ADDITIONAL FIELDS
- "dailyCalories" MUST be a NUMBER, not a string
- DO NOT add fields like "supplements", "macros", "notes", or ANYTHING else
- ONLY include the EXACT fields shown in the example below
- Each meal should include ONLY a "name" and "foods" array

Return a JSON object with this EXACT structure and no other fields:
{json.dumps(DIET_PLAN_EXAMPLE, indent=2)}

DO NOT add any fields that are not in this example. Your response must be a valid JSON object with no additional text."""

    # === Upstream call ===

    def _request_json(self, prompt: str, label: str) -> Dict[str, Any]:
        text = self._call_model(prompt, label)
        return self.parse_response(text, label)

    def _call_model(self, prompt: str, label: str) -> str:
        attempt = 0
        while True:
            try:
                response = self.model.generate_content(
                    prompt,
                    request_options={"timeout": self.timeout},
                )
                return response.text
            except ValueError as e:
                # response.text raises when the candidate was blocked or empty
                logger.error(f"PlanGenerator: {label} response had no text: {e}")
                raise PlanGenerationError(f"Empty {label} response") from e
            except google_exceptions.GoogleAPICallError as e:
                if attempt >= self.max_retries:
                    logger.error(f"PlanGenerator: {label} request failed: {e}", exc_info=True)
                    raise PlanGenerationError(f"Failed to generate {label}") from e
                delay = self.retry_base_delay * (2 ** attempt)
                attempt += 1
                logger.warning(f"PlanGenerator: {label} request failed ({e}); retry {attempt} in {delay:.1f}s")
                time.sleep(delay)

    @staticmethod
    def parse_response(text: str, label: str) -> Dict[str, Any]:
        """Strip markdown fences and decode; anything but a JSON object is an error."""
        cleaned = (text or "").replace("```json", "").replace("```", "").strip()
        try:
            result = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse {label} JSON: {e}")
            logger.debug(f"Raw response: {text}")
            raise UpstreamParseError(f"Invalid {label} response", raw_response=text or "") from e

        if not isinstance(result, dict):
            logger.error(f"{label} response is {type(result).__name__}, expected an object")
            raise UpstreamParseError(f"Invalid {label} response", raw_response=text or "")
        return result
