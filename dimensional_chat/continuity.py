"""Continuity decision: keep the last speaker or pick a new one.

Signals, strongest first:
  1. Fewer than two recorded turns → always reselect.
  2. Any persona mentioned by alias → reselect (even the current speaker).
  3. Same topic keyword as the previous message → keep.
  4. Short reply, continuation phrase, or previous message was a question → keep.
Anything else reselects.
"""

from dimensional_chat.extractors import extract_topic, get_mentioned_personas
from dimensional_chat.models import ConversationContext
from dimensional_chat.personas import CONTINUATION_INDICATORS

SHORT_MESSAGE_LENGTH = 5
QUESTION_MARKS = ("?", "？")


def is_continuation(message: str, last_message: str) -> bool:
    """Weak continuation signals on the raw message and the previous one."""
    if len(message) <= SHORT_MESSAGE_LENGTH:
        return True
    if any(indicator in message for indicator in CONTINUATION_INDICATORS):
        return True
    return last_message.rstrip().endswith(QUESTION_MARKS)


def should_continue(context: ConversationContext, message: str) -> bool:
    if context.message_count < 2:
        return False

    if get_mentioned_personas(message):
        return False

    topic = extract_topic(message)
    if topic is not None and topic == context.topic:
        return True

    return is_continuation(message, context.last_user_message)


def continuation_speaker(context: ConversationContext) -> str | None:
    return context.current_speaker
