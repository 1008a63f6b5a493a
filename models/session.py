from typing import Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import uuid

from models.profile import FitnessProfile
from models.plan import GeneratedPlan


class TrackerState(Enum):
    """Where a conversation is on its way to a plan."""
    COLLECTING = "collecting"
    READY_FULL = "ready_full"                # all 9 fields collected
    READY_PARTIAL = "ready_partial"          # call ended with 7-8 fields
    ENDED_INCOMPLETE = "ended_incomplete"    # call ended with 6 or fewer
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ConversationContext:
    """Everything one conversation owns. A new one is created per call."""
    user_id: Optional[str] = None
    conversation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    profile: FitnessProfile = field(default_factory=FitnessProfile)
    messages: List[Dict[str, str]] = field(default_factory=list)  # [{"role": "user", "content": "..."}]
    state: TrackerState = TrackerState.COLLECTING
    call_active: bool = False
    plan: Optional[GeneratedPlan] = None
    plan_id: Optional[str] = None
    last_error: Optional[str] = None

    def add_message(self, role: str, content: str):
        self.messages.append({"role": role, "content": content})

    def add_user_message(self, msg: str):
        self.add_message("user", msg)

    def add_assistant_message(self, msg: str):
        self.add_message("assistant", msg)
