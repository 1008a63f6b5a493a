"""
Voice assistant contract.

The real call transport is an external SDK; the core only needs to be able
to start/stop a call and to receive its events.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class VoiceEventType(str, Enum):
    CALL_START = "call-start"
    CALL_END = "call-end"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    MESSAGE = "message"
    ERROR = "error"


@dataclass
class VoiceEvent:
    """One event emitted by the voice assistant."""
    type: VoiceEventType
    message_type: Optional[str] = None       # "transcript" for speech-to-text
    transcript_type: Optional[str] = None    # "partial" or "final"
    transcript: Optional[str] = None
    role: Optional[str] = None               # "user" or "assistant"
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def is_final_transcript(self) -> bool:
        return (
            self.type == VoiceEventType.MESSAGE
            and self.message_type == "transcript"
            and self.transcript_type == "final"
        )

    @classmethod
    def from_dict(cls, event_type: str, payload: Optional[Dict[str, Any]] = None) -> "VoiceEvent":
        """Build from the SDK's event name and payload (camelCase keys)."""
        payload = payload or {}
        return cls(
            type=VoiceEventType(event_type),
            message_type=payload.get("type"),
            transcript_type=payload.get("transcriptType"),
            transcript=payload.get("transcript"),
            role=payload.get("role"),
            error_message=payload.get("message"),
            error_code=payload.get("code"),
        )

    @classmethod
    def final_transcript(cls, text: str, role: str = "user") -> "VoiceEvent":
        return cls(
            type=VoiceEventType.MESSAGE,
            message_type="transcript",
            transcript_type="final",
            transcript=text,
            role=role,
        )


class VoiceClient(ABC):
    """Controls a voice call. Events flow back through CoachSession.handle_event."""

    @abstractmethod
    def start(self, assistant_id: Optional[str] = None) -> None:
        """Start a call with the configured assistant."""

    @abstractmethod
    def stop(self, delay: float = 0.0) -> None:
        """End the call, optionally after ``delay`` seconds so the last utterance lands."""
