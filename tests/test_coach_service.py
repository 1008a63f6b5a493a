"""Integration Tests for CoachSession.

Voice events in, stored plan out. Gemini and the voice SDK are replaced by
fakes; the store writes to tmp_path.
"""
from unittest.mock import Mock

import pytest

from agents.plan_agent import PlanGenerator
from core.exceptions import PersistenceError
from evaluation import COMPLETE_CONVERSATION
from models.session import TrackerState
from services.coach_service import CoachSession, NOT_AUTHENTICATED_MESSAGE, PLAN_READY_MESSAGE
from services.plan_store import PlanStore
from services.voice import VoiceEvent, VoiceEventType
from conftest import VALID_WORKOUT, VALID_DIET, make_model

PARTIAL_CONVERSATION = [u for u in COMPLETE_CONVERSATION if u not in ("I'm 30 years old", "No injuries")]

FORM = {
    "age": "30",
    "height": "5'8\"",
    "weight": "70 kg",
    "fitnessLevel": "beginner",
    "fitnessGoal": "weight loss",
    "workoutDays": "3",
}


@pytest.fixture
def model(valid_model):
    return valid_model


@pytest.fixture
def session(tmp_path, fake_voice, model):
    return CoachSession(
        user_id="user_1",
        voice=fake_voice,
        generator=PlanGenerator(model=model),
        store=PlanStore(storage_dir=tmp_path),
        end_call_delay=2.0,
    )


def talk(session, utterances):
    session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))
    for utterance in utterances:
        session.handle_event(VoiceEvent.final_transcript(utterance))


def assistant_messages(session):
    return [m["content"] for m in session.context.messages if m["role"] == "assistant"]


class TestFullConversation:
    """Nine fields: the call is ended by us and the plan is generated."""

    def test_call_is_stopped_with_grace_delay(self, session, fake_voice):
        talk(session, COMPLETE_CONVERSATION)
        assert fake_voice.stopped_with == [2.0]
        assert session.context.state == TrackerState.READY_FULL

    def test_plan_is_generated_and_stored_on_call_end(self, session, model):
        talk(session, COMPLETE_CONVERSATION)
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_END))

        assert session.context.state == TrackerState.COMPLETED
        assert session.context.plan.workout_plan.to_dict() == VALID_WORKOUT
        plans = session.list_plans()
        assert [p.id for p in plans] == [session.context.plan_id]
        assert plans[0].name == "muscle gain Fitness Plan"
        assert plans[0].dietPlan == VALID_DIET

        messages = assistant_messages(session)
        assert messages[0].startswith("Great! I have 9 out of 9 fields.")
        assert "Missing" not in messages[0]
        assert messages[-1] == PLAN_READY_MESSAGE

    def test_transcripts_after_generation_are_ignored(self, session):
        talk(session, COMPLETE_CONVERSATION)
        session.on_conversation_end()
        count = len(session.context.messages)

        assert session.submit_transcript("Actually I'm 50 years old") == []
        assert len(session.context.messages) == count
        assert session.current_profile().age == 30


class TestPartialConversation:
    """Seven or eight fields: generated with defaults once the call ends."""

    def test_defaults_reach_the_generator(self, session, model):
        talk(session, PARTIAL_CONVERSATION)
        outcome = session.on_conversation_end()

        assert outcome.success
        workout_prompt = model.generate_content.call_args_list[0].args[0]
        assert "Age: 25" in workout_prompt
        assert "Injuries or limitations: None" in workout_prompt
        assert "Missing: age, injuries" in assistant_messages(session)[0]

    def test_collected_profile_is_not_modified_by_defaults(self, session):
        talk(session, PARTIAL_CONVERSATION)
        session.on_conversation_end()
        assert session.current_profile().age is None

    def test_missing_height_and_weight_ask_for_correction(self, session, model):
        talk(session, [u for u in COMPLETE_CONVERSATION if u not in ("My height is 5 foot 8 inches", "I weigh 70 kg")])
        outcome = session.on_conversation_end()

        assert not outcome.success
        assert outcome.error.startswith("Please correct: Missing required information: height, weight")
        assert session.context.state == TrackerState.READY_PARTIAL
        model.generate_content.assert_not_called()

    def test_form_completes_a_rejected_partial_call(self, session):
        talk(session, [u for u in COMPLETE_CONVERSATION if u not in ("My height is 5 foot 8 inches", "I weigh 70 kg")])
        session.on_conversation_end()

        outcome = session.submit_manual_form({"height": "5'8\"", "weight": "70 kg"})
        assert outcome.success
        assert session.context.state == TrackerState.COMPLETED


class TestIncompleteConversation:
    """Six or fewer fields: no generation, the form is offered."""

    def test_no_generation_and_form_offered(self, session, model):
        talk(session, ["I'm 30 years old", "I want to lose weight"])
        assert session.on_conversation_end() is None

        assert session.context.state == TrackerState.ENDED_INCOMPLETE
        model.generate_content.assert_not_called()
        message = assistant_messages(session)[-1]
        assert "Currently have 2/9 fields" in message
        assert "height" in message
        assert "manual form" in message

    def test_repeated_call_end_reports_once(self, session):
        talk(session, ["I'm 30 years old"])
        session.on_conversation_end()
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_END))
        assert len(assistant_messages(session)) == 1

    def test_manual_form_completes_the_plan(self, session):
        talk(session, ["I'm 30 years old"])
        session.on_conversation_end()

        outcome = session.submit_manual_form(FORM)
        assert outcome.success
        assert outcome.plan_id == session.context.plan_id
        assert session.current_profile().workout_days == 3
        assert session.list_plans()[0].name == "weight loss Fitness Plan"

    def test_snake_case_form_keys(self, session):
        form = {"age": 30, "height": "180 cm", "weight": "80 kg", "fitness_level": "advanced",
                "fitness_goal": "strength", "workout_days": 5}
        assert session.submit_manual_form(form).success
        assert session.list_plans()[0].name == "strength Fitness Plan"


class TestManualFormValidation:
    """Invalid form values ask for a correction; the conversation stays ready."""

    def test_out_of_range_days_are_rejected(self, session, model):
        outcome = session.submit_manual_form(dict(FORM, workoutDays="9"))
        assert not outcome.success
        assert outcome.error.startswith("Please correct: workout_days must be between 1 and 7")
        assert "error generating" not in outcome.error
        assert assistant_messages(session)[-1] == outcome.error
        assert session.context.state == TrackerState.READY_FULL
        assert session.context.last_error is None
        model.generate_content.assert_not_called()

    def test_unparseable_age_is_rejected(self, session):
        outcome = session.submit_manual_form(dict(FORM, age="thirty"))
        assert not outcome.success
        assert "age must be between 10 and 100" in outcome.error

    def test_corrected_form_can_be_resubmitted(self, session):
        session.submit_manual_form(dict(FORM, workoutDays="9"))
        assert session.submit_manual_form(FORM).success
        assert session.context.state == TrackerState.COMPLETED

    def test_missing_required_fields(self, session):
        outcome = session.submit_manual_form({"age": "30"})
        assert not outcome.success
        assert "Missing required information" in outcome.error


class TestFailures:
    """Every failure becomes an assistant message; nothing raises."""

    def test_unauthenticated_user(self, tmp_path, fake_voice, model):
        session = CoachSession(user_id=None, voice=fake_voice, generator=PlanGenerator(model=model),
                               store=PlanStore(storage_dir=tmp_path))
        talk(session, COMPLETE_CONVERSATION)
        outcome = session.on_conversation_end()

        assert outcome.error == NOT_AUTHENTICATED_MESSAGE
        assert assistant_messages(session)[-1] == NOT_AUTHENTICATED_MESSAGE
        assert session.context.state == TrackerState.READY_FULL
        model.generate_content.assert_not_called()
        assert session.list_plans() == []

    def test_upstream_parse_error(self, session):
        session.generator.model = make_model("not json")
        talk(session, COMPLETE_CONVERSATION)
        outcome = session.on_conversation_end()

        assert not outcome.success
        assert outcome.error.startswith(
            "I apologize, but there was an error generating your fitness plan: Invalid workout plan response"
        )
        assert session.context.state == TrackerState.FAILED
        assert session.context.last_error == "Invalid workout plan response"
        assert session.list_plans() == []

    def test_store_failure(self, session):
        session.store = Mock()
        session.store.insert.side_effect = PersistenceError("Failed to save fitness plan")
        talk(session, COMPLETE_CONVERSATION)
        outcome = session.on_conversation_end()

        assert "Failed to save fitness plan" in outcome.error
        assert session.context.state == TrackerState.FAILED

    def test_unexpected_error(self, session):
        session.generator = Mock()
        session.generator.generate.side_effect = RuntimeError("boom")
        talk(session, COMPLETE_CONVERSATION)
        outcome = session.on_conversation_end()

        assert "boom" in outcome.error
        assert session.context.state == TrackerState.FAILED


class TestVoiceEvents:

    def test_start_conversation_starts_the_call(self, session, fake_voice):
        session.start_conversation()
        assert len(fake_voice.started_with) == 1

    def test_call_start_resets_the_conversation(self, session):
        talk(session, ["I'm 30 years old"])
        old_id = session.context.conversation_id
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))

        assert session.context.conversation_id != old_id
        assert session.current_profile().filled_fields == []
        assert session.context.call_active

    def test_assistant_speech_is_recorded_not_extracted(self, session):
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))
        session.handle_event(VoiceEvent.final_transcript("Are you 30 years old?", role="assistant"))
        assert session.context.messages == [{"role": "assistant", "content": "Are you 30 years old?"}]
        assert session.current_profile().age is None

    def test_partial_transcripts_are_ignored(self, session):
        session.handle_event(VoiceEvent.from_dict("message", {
            "type": "transcript", "transcriptType": "partial", "transcript": "I am 30", "role": "user",
        }))
        assert session.context.messages == []

    def test_final_transcript_payload(self, session):
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))
        session.handle_event(VoiceEvent.from_dict("message", {
            "type": "transcript", "transcriptType": "final", "transcript": "I weigh 70 kg", "role": "user",
        }))
        assert session.current_profile().weight == "70 kg"

    def test_transcript_without_role_is_not_extracted(self, session):
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))
        session.handle_event(VoiceEvent.from_dict("message", {
            "type": "transcript", "transcriptType": "final", "transcript": "I am 30 years old",
        }))
        assert session.context.messages == [{"role": "unknown", "content": "I am 30 years old"}]
        assert session.current_profile().age is None

    def test_error_marks_call_inactive(self, session):
        session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))
        session.handle_event(VoiceEvent.from_dict("error", {"message": "network", "code": "E1"}))
        assert not session.context.call_active

    def test_no_call_end_request_without_active_call(self, session, fake_voice):
        for utterance in COMPLETE_CONVERSATION:
            session.submit_transcript(utterance)
        assert session.context.state == TrackerState.READY_FULL
        assert fake_voice.stopped_with == []

    def test_current_profile_is_a_copy(self, session):
        session.current_profile().age = 99
        assert session.context.profile.age is None

    def test_event_from_unknown_type(self):
        with pytest.raises(ValueError):
            VoiceEvent.from_dict("volume-level", {})
