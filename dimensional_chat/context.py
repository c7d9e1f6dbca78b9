"""In-memory conversation context store.

One ConversationContext per (user_id, group_id). Contexts are created on
first read, mutated only through update(), and dropped by reset(). Nothing
is written to disk; the store lives as long as the process.

Turns for the same key are serialised with a per-key asyncio.Lock obtained
from lock(). Callers hold it while deciding a speaker and again while
calling update(), but never across the outbound completion call.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from dimensional_chat.extractors import extract_topic
from dimensional_chat.models import HISTORY_LIMIT, ConversationContext, SpeakerTurn

logger = logging.getLogger(__name__)

ContextKey = tuple[str, str]


class ContextStore:
    def __init__(self) -> None:
        self._contexts: dict[ContextKey, ConversationContext] = {}
        self._locks: dict[ContextKey, asyncio.Lock] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, user_id: str, group_id: str) -> ConversationContext:
        """Return the context for (user, group), creating an empty one if missing."""
        key = (user_id, group_id)
        context = self._contexts.get(key)
        if context is None:
            context = ConversationContext()
            self._contexts[key] = context
        return context

    def snapshot(self, user_id: str, group_id: str) -> dict[str, Any]:
        """JSON view of the context; an empty default is not stored."""
        context = self._contexts.get((user_id, group_id))
        if context is None:
            context = ConversationContext()
        return context.model_dump(mode="json")

    def __len__(self) -> int:
        return len(self._contexts)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update(
        self, user_id: str, group_id: str, speaker: str, user_message: str
    ) -> ConversationContext:
        """Record one finished turn. Call exactly once per processed message."""
        context = self.get(user_id, group_id)
        context.current_speaker = speaker
        context.last_user_message = user_message
        context.message_count += 1
        context.speaker_history.append(SpeakerTurn(
            speaker=speaker,
            timestamp=datetime.now(timezone.utc),
            message=user_message,
        ))
        if len(context.speaker_history) > HISTORY_LIMIT:
            context.speaker_history = context.speaker_history[-HISTORY_LIMIT:]
        context.topic = extract_topic(user_message)
        logger.debug(
            "context updated user=%s group=%s speaker=%s count=%d topic=%s",
            user_id, group_id, speaker, context.message_count, context.topic,
        )
        return context

    def reset(self, user_id: str, group_id: str) -> bool:
        """Forget the context for (user, group). Returns True if one existed."""
        existed = self._contexts.pop((user_id, group_id), None) is not None
        if existed:
            logger.info(f"Context reset for user={user_id} group={group_id}")
        return existed

    def forget_user(self, user_id: str) -> int:
        """Drop every context and lock held for user_id. Returns contexts removed."""
        keys = [k for k in self._contexts if k[0] == user_id]
        for key in keys:
            del self._contexts[key]
        for key in [k for k in self._locks if k[0] == user_id]:
            del self._locks[key]
        return len(keys)

    # ------------------------------------------------------------------
    # Concurrency
    # ------------------------------------------------------------------

    def lock(self, user_id: str, group_id: str) -> asyncio.Lock:
        """Per-key lock; the same key always returns the same lock."""
        return self._locks.setdefault((user_id, group_id), asyncio.Lock())
