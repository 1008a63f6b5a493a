"""CoachSession - Conversation Controller

Owns one user's conversation context and wires the components together:

    voice events -> transcripts -> FieldExtractor -> ProfileCompletionTracker
    call end / manual form -> PlanRequestGate -> PlanGenerator -> PlanStore

Every failure on the plan path becomes an assistant message in the
conversation and a failed PlanOutcome; nothing here is fatal to the caller.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from agents.field_extractor import FieldExtractor
from agents.completion_tracker import ProfileCompletionTracker, READY_STATES
from agents.plan_gate import PlanRequestGate, GateMode
from agents.plan_agent import PlanGenerator
from config.settings import END_CALL_GRACE_SECONDS, VAPI_ASSISTANT_ID
from core.exceptions import CoachError, PlanRequestError
from core.observability import Tracer, log_profile
from models.plan import GeneratedPlan
from models.profile import FitnessProfile, PROFILE_FIELDS, WIRE_KEYS
from models.session import ConversationContext, TrackerState
from services.plan_store import PlanStore, PlanRecord, get_plan_store
from services.voice import VoiceClient, VoiceEvent, VoiceEventType

logger = logging.getLogger(__name__)

# Once generation has started the profile is frozen
EXTRACTING_STATES = (TrackerState.COLLECTING, TrackerState.READY_FULL)
GENERATION_STARTED_STATES = (TrackerState.GENERATING, TrackerState.COMPLETED, TrackerState.FAILED)

NOT_AUTHENTICATED_MESSAGE = "Error: User not authenticated. Please log in again."
PLAN_READY_MESSAGE = (
    "Perfect! I've generated your personalized fitness and diet plan "
    "based on the information provided. Here it is:"
)
CORRECTION_MESSAGE = "Please correct: {reason}. You can update your details in the manual form and try again."

INTEGER_FORM_FIELDS = ("age", "workout_days")


@dataclass
class PlanOutcome:
    """Result of one plan request."""
    success: bool
    plan: Optional[GeneratedPlan] = None
    plan_id: Optional[str] = None
    error: Optional[str] = None


class CoachSession:
    """
    CONVERSATION CONTROLLER for one user.

    A fresh ConversationContext (and tracker) is created for every call;
    plans outlive it in the PlanStore.

    Attributes:
        user_id: Authenticated user id supplied by the caller (may be None).
        context: Current conversation state.
        tracker: State machine bound to ``context``.
    """

    def __init__(self, user_id: Optional[str] = None,
                 voice: Optional[VoiceClient] = None,
                 extractor: Optional[FieldExtractor] = None,
                 gate: Optional[PlanRequestGate] = None,
                 generator: Optional[PlanGenerator] = None,
                 store: Optional[PlanStore] = None,
                 end_call_delay: float = END_CALL_GRACE_SECONDS):
        self.user_id = user_id
        self.voice = voice
        self.extractor = extractor or FieldExtractor()
        self.gate = gate or PlanRequestGate()
        self.generator = generator or PlanGenerator()
        self.store = store or get_plan_store()
        self.end_call_delay = end_call_delay
        self._new_context()

    def _new_context(self):
        self.context = ConversationContext(user_id=self.user_id)
        self.tracker = ProfileCompletionTracker(self.context)
        logger.info(f"New conversation {self.context.conversation_id} for user {self.user_id}")

    # === Call lifecycle ===

    def start_conversation(self):
        """Reset the conversation and start the voice call, if any."""
        self._new_context()
        if self.voice:
            self.voice.start(VAPI_ASSISTANT_ID)

    def handle_event(self, event: VoiceEvent):
        """Dispatch one voice assistant event."""
        if event.type == VoiceEventType.CALL_START:
            if self.context.messages or self.context.state != TrackerState.COLLECTING:
                self._new_context()
            self.context.call_active = True
        elif event.type == VoiceEventType.CALL_END:
            self.on_conversation_end()
        elif event.type in (VoiceEventType.SPEECH_START, VoiceEventType.SPEECH_END):
            logger.debug(f"Assistant {event.type.value}")
        elif event.type == VoiceEventType.MESSAGE:
            if event.is_final_transcript and event.transcript:
                self.submit_transcript(event.transcript, event.role)
        elif event.type == VoiceEventType.ERROR:
            logger.error(f"Voice error {event.error_code}: {event.error_message}")
            self.context.call_active = False

    def submit_transcript(self, text: str, role: Optional[str] = "user") -> List[str]:
        """Record a final transcript and extract profile fields from user speech.

        Only speech attributed to the user is extracted from. Returns the fields
        newly filled by this transcript.
        """
        if self.context.state in GENERATION_STARTED_STATES:
            logger.info(f"Ignoring transcript while {self.context.state.value}")
            return []

        self.context.add_message(role or "unknown", text)
        if role != "user" or self.context.state not in EXTRACTING_STATES:
            return []

        before = set(self.context.profile.filled_fields)
        self.context.profile = self.extractor.extract(self.context.profile, text)
        added = [name for name in self.context.profile.filled_fields if name not in before]

        if self.tracker.on_profile_updated(self.context.profile, self.context.call_active):
            logger.info("Profile complete, ending the call")
            if self.voice:
                self.voice.stop(delay=self.end_call_delay)
        return added

    def on_conversation_end(self) -> Optional[PlanOutcome]:
        """Branch on how much was collected once the call is over."""
        self.context.call_active = False
        profile = self.context.profile
        previous = self.tracker.state
        state = self.tracker.on_conversation_end(profile)

        count = len(profile.filled_fields)
        missing = ", ".join(WIRE_KEYS[name] for name in profile.missing_fields)

        if state in READY_STATES:
            announcement = (
                f"Great! I have {count} out of {len(PROFILE_FIELDS)} fields. "
                f"I'll generate a plan based on what you've provided."
            )
            if missing:
                announcement += f" Missing: {missing}"
            self.context.add_assistant_message(announcement)
            return self.request_plan()

        if state == TrackerState.ENDED_INCOMPLETE and previous == TrackerState.COLLECTING:
            self.context.add_assistant_message(
                f"The call ended, but I need more information to generate your plan. "
                f"Currently have {count}/{len(PROFILE_FIELDS)} fields. Missing: {missing}. "
                f"You can use the manual form below to complete the missing information."
            )
        return None

    def current_profile(self) -> FitnessProfile:
        return self.context.profile.copy()

    # === Plan generation ===

    def request_plan(self, profile: Optional[FitnessProfile] = None,
                     mode: Optional[GateMode] = None) -> PlanOutcome:
        """Gate, generate and store a plan for the current conversation."""
        if not self.user_id:
            logger.error("Plan requested without an authenticated user")
            return self._fail(NOT_AUTHENTICATED_MESSAGE)

        profile = profile or self.context.profile
        if mode is None:
            mode = GateMode.PARTIAL if self.tracker.state == TrackerState.READY_PARTIAL else GateMode.FULL

        # Rejected requests leave the tracker ready for a corrected resubmission
        try:
            validated = self.gate.validate(profile, mode)
        except PlanRequestError as e:
            logger.warning(f"Plan request rejected ({mode.value}): {e.message}")
            return self._fail(CORRECTION_MESSAGE.format(reason=e.message))

        try:
            self.tracker.start_generation()
        except CoachError as e:
            logger.warning(f"Plan request rejected: {e.message}")
            return self._fail(e.message)

        try:
            with Tracer("PlanRequest", f"{mode.value}:{self.context.conversation_id}"):
                log_profile(validated, "PlanRequest")
                plan = self.generator.generate(validated)
                plan_id = self.store.insert(
                    self.user_id, f"{validated.fitness_goal} Fitness Plan", plan
                )
        except CoachError as e:
            return self._generation_failed(e.message)
        except Exception as e:
            logger.error(f"Unexpected plan generation error: {e}", exc_info=True)
            return self._generation_failed(str(e) or "Unknown error")

        self.tracker.mark_completed()
        self.context.plan = plan
        self.context.plan_id = plan_id
        self.context.add_assistant_message(PLAN_READY_MESSAGE)
        return PlanOutcome(success=True, plan=plan, plan_id=plan_id)

    def submit_manual_form(self, form: Dict[str, Any]) -> PlanOutcome:
        """Form values override the collected profile; validated strictly."""
        submitted = FitnessProfile.from_dict(form)
        values = {name: getattr(submitted, name) for name in submitted.filled_fields}
        for name in INTEGER_FORM_FIELDS:
            if name in values:
                values[name] = _to_int(values[name])

        self.context.profile = self.context.profile.copy(**values)
        try:
            self.tracker.resume_for_manual_entry()
        except CoachError as e:
            return self._fail(e.message)
        return self.request_plan(self.context.profile, GateMode.MANUAL)

    def list_plans(self) -> List[PlanRecord]:
        if not self.user_id:
            return []
        return self.store.list_active(self.user_id)

    def _generation_failed(self, reason: str) -> PlanOutcome:
        self.tracker.mark_failed(reason)
        return self._fail(
            f"I apologize, but there was an error generating your fitness plan: {reason}. Please try again."
        )

    def _fail(self, message: str) -> PlanOutcome:
        self.context.add_assistant_message(message)
        return PlanOutcome(success=False, error=message)


def _to_int(value: Any) -> Any:
    """Form values arrive as text; anything unparseable is left for the range check."""
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return value
