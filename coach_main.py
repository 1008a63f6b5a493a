"""CodeFlex Coach - Console Edition

Drives one conversation from the keyboard instead of a voice call:
    <any text>              a final user transcript
    end                     the call ends (plan is generated if enough data)
    form key=value ...      manual form, e.g. form age=30 workoutDays=4
    plans                   list your active plans
    exit                    quit
"""
import json
import logging
import shlex
from typing import Dict, Optional

from config.settings import GEMINI_API_KEY
from core.observability import get_metrics_summary
from services.coach_service import CoachSession
from services.voice import VoiceClient, VoiceEvent, VoiceEventType

logger = logging.getLogger(__name__)


class ConsoleVoiceClient(VoiceClient):
    """Stands in for the voice SDK: stopping just ends the call right away."""

    def __init__(self):
        self.active = False

    def start(self, assistant_id: Optional[str] = None) -> None:
        self.active = True
        logger.info(f"Console call started (assistant {assistant_id})")

    def stop(self, delay: float = 0.0) -> None:
        self.active = False
        logger.info(f"Console call stopped (requested delay {delay}s)")


def parse_form(line: str) -> Dict[str, str]:
    """'age=30 fitnessGoal="weight loss"' -> {'age': '30', 'fitnessGoal': 'weight loss'}"""
    form = {}
    for token in shlex.split(line):
        key, sep, value = token.partition("=")
        if sep:
            form[key] = value
    return form


def print_new_messages(session: CoachSession, seen: int) -> int:
    for message in session.context.messages[seen:]:
        if message["role"] == "assistant":
            print(f"Coach: {message['content']}")
    return len(session.context.messages)


def main(user_id: str = "console_user"):
    print("=== CodeFlex Coach (Console Edition) ===")

    if not GEMINI_API_KEY:
        print("Warning: GEMINI_API_KEY not found. Plans cannot be generated.")

    voice = ConsoleVoiceClient()
    session = CoachSession(user_id=user_id, voice=voice)
    session.start_conversation()
    session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))

    print(__doc__.split("\n", 2)[2])
    print("Coach: Hi! Tell me about yourself: age, height, weight, goals and how often you can train.")
    seen = 0

    while True:
        user_input = input("\nYou: ").strip()
        if not user_input:
            continue
        command = user_input.lower()

        if command in ["exit", "quit"]:
            print("Coach: Good luck with your training!")
            break
        elif command == "end":
            session.handle_event(VoiceEvent(type=VoiceEventType.CALL_END))
        elif command.startswith("form "):
            outcome = session.submit_manual_form(parse_form(user_input[5:]))
            seen = print_new_messages(session, seen)
            if outcome.success:
                print(json.dumps(outcome.plan.to_dict(), indent=2))
            continue
        elif command == "plans":
            for record in session.list_plans():
                print(f"  {record.createdAt}  {record.name}  ({record.id})")
            continue
        else:
            added = session.submit_transcript(user_input)
            if added:
                print(f"  [captured: {', '.join(added)}]")
            if not voice.active and session.context.call_active:
                # All fields collected: the call was ended from our side
                session.handle_event(VoiceEvent(type=VoiceEventType.CALL_END))

        seen = print_new_messages(session, seen)
        if session.context.plan is not None and not session.context.call_active:
            print(json.dumps(session.context.plan.to_dict(), indent=2))
            logger.info(f"Metrics: {get_metrics_summary()}")
            # Next call starts a fresh conversation
            session.start_conversation()
            session.handle_event(VoiceEvent(type=VoiceEventType.CALL_START))
            seen = 0


if __name__ == "__main__":
    main()
