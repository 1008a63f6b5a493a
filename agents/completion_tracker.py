"""ProfileCompletionTracker - Decides When a Conversation Has Enough Data

Thresholds:
    FULL (9/9):    end the call on our side, the plan can be generated as-is.
    PARTIAL (7/9): on call end, generate anyway with defaults for the rest.
    Below that:    the call ended incomplete; the user finishes via the form.

State machine:
    collecting -> ready_full          (ninth field set during the call)
    collecting -> ready_partial       (call ended with 7-8 fields)
    collecting -> ended_incomplete    (call ended with 6 or fewer)
    ready_*    -> generating          (generation request issued)
    generating -> completed | failed  (no automatic retry)
"""
from typing import List, Optional
import logging

from core.exceptions import InvalidStateError
from models.profile import FitnessProfile, PROFILE_FIELDS
from models.session import ConversationContext, TrackerState

logger = logging.getLogger(__name__)

FULL_THRESHOLD = len(PROFILE_FIELDS)
PARTIAL_THRESHOLD = 7

READY_STATES = (TrackerState.READY_FULL, TrackerState.READY_PARTIAL)


class ProfileCompletionTracker:
    """Drives one conversation's TrackerState from its profile."""

    def __init__(self, context: ConversationContext,
                 full_threshold: int = FULL_THRESHOLD,
                 partial_threshold: int = PARTIAL_THRESHOLD):
        self.context = context
        self.full_threshold = full_threshold
        self.partial_threshold = partial_threshold

    @property
    def state(self) -> TrackerState:
        return self.context.state

    @staticmethod
    def completion_count(profile: FitnessProfile) -> int:
        return len(profile.filled_fields)

    @staticmethod
    def missing_fields(profile: FitnessProfile) -> List[str]:
        return profile.missing_fields

    def completion_ratio(self, profile: FitnessProfile) -> float:
        return self.completion_count(profile) / len(PROFILE_FIELDS)

    def on_profile_updated(self, profile: FitnessProfile, call_active: bool) -> bool:
        """Re-evaluate after extraction.

        Returns True when the voice call should be ended because every
        field is now known.
        """
        if self.state != TrackerState.COLLECTING:
            return False
        count = self.completion_count(profile)
        if count < self.full_threshold:
            return False

        self._transition(TrackerState.READY_FULL)
        logger.info(f"All {count} fields collected")
        return call_active

    def on_conversation_end(self, profile: FitnessProfile) -> TrackerState:
        """Branch on the partial threshold once the call is over."""
        if self.state != TrackerState.COLLECTING:
            return self.state

        count = self.completion_count(profile)
        if count >= self.full_threshold:
            self._transition(TrackerState.READY_FULL)
        elif count >= self.partial_threshold:
            self._transition(TrackerState.READY_PARTIAL)
        else:
            self._transition(TrackerState.ENDED_INCOMPLETE)
        logger.info(f"Call ended with {count}/{len(PROFILE_FIELDS)} fields -> {self.state.value}")
        return self.state

    def resume_for_manual_entry(self) -> TrackerState:
        """Manual form submission: make the conversation ready again."""
        if self.state in (TrackerState.GENERATING,):
            raise InvalidStateError(self.state.value, "submit the form")
        if self.state not in READY_STATES:
            self._transition(TrackerState.READY_FULL)
        return self.state

    def start_generation(self):
        if self.state not in READY_STATES:
            raise InvalidStateError(self.state.value, "start plan generation")
        self._transition(TrackerState.GENERATING)

    def mark_completed(self):
        if self.state != TrackerState.GENERATING:
            raise InvalidStateError(self.state.value, "complete plan generation")
        self._transition(TrackerState.COMPLETED)

    def mark_failed(self, reason: Optional[str] = None):
        if self.state != TrackerState.GENERATING:
            raise InvalidStateError(self.state.value, "fail plan generation")
        self.context.last_error = reason
        self._transition(TrackerState.FAILED)

    def _transition(self, new_state: TrackerState):
        logger.debug(f"[{self.context.conversation_id}] {self.state.value} -> {new_state.value}")
        self.context.state = new_state
