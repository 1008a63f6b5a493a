"""Pytest configuration and fixtures."""
import json
from unittest.mock import Mock

import pytest

from core.observability import metrics
from models.profile import FitnessProfile
from services.voice import VoiceClient


VALID_WORKOUT = {
    "schedule": ["Monday", "Wednesday", "Friday"],
    "exercises": [
        {
            "day": "Monday",
            "routines": [
                {"name": "Squats", "sets": 4, "reps": 8},
                {"name": "Bench Press", "sets": 3, "reps": 10},
            ],
        },
        {
            "day": "Wednesday",
            "routines": [{"name": "Deadlift", "sets": 3, "reps": 5}],
        },
    ],
}

VALID_DIET = {
    "dailyCalories": 2400,
    "meals": [
        {"name": "Breakfast", "foods": ["Oatmeal", "Eggs"]},
        {"name": "Dinner", "foods": ["Salmon", "Rice", "Broccoli"]},
    ],
}


class FakeVoiceClient(VoiceClient):
    """Records start/stop calls."""

    def __init__(self):
        self.started_with = []
        self.stopped_with = []

    def start(self, assistant_id=None):
        self.started_with.append(assistant_id)

    def stop(self, delay=0.0):
        self.stopped_with.append(delay)


def make_model(*texts):
    """Gemini stand-in whose generate_content returns each text in turn."""
    model = Mock()
    model.generate_content.side_effect = [Mock(text=t) for t in texts]
    return model


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def complete_profile():
    """All nine fields, as collected from a voice call."""
    return FitnessProfile(
        age=30,
        height="5'8\"",
        weight="70 kg",
        fitness_level="beginner",
        fitness_goal="muscle gain",
        workout_days=4,
        injuries="None",
        dietary_restrictions="I'm vegetarian",
        activity_level="sedentary",
    )


@pytest.fixture
def partial_profile(complete_profile):
    """Seven fields: age and injuries were never mentioned."""
    return complete_profile.copy(age=None, injuries=None)


@pytest.fixture
def valid_model():
    return make_model(json.dumps(VALID_WORKOUT), json.dumps(VALID_DIET))


@pytest.fixture
def fake_voice():
    return FakeVoiceClient()
