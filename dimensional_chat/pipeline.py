"""Chat turn pipeline for group and single-character conversations.

Group turn (process_group_message):
  1. Under the (user, group) lock: read context, ask the continuity engine
     whether the last speaker keeps talking; otherwise select a new speaker.
  2. Build the speaker's system prompt and the windowed message list.
  3. Call the completion backend (no lock held).
  4. Normalise the reply for the speaker, or substitute a stock fallback
     line if the backend failed.
  5. Under the lock again: record the turn in the context store. This runs
     on the fallback path too, with the already-selected speaker.

Single turn (process_single_message):
  Cache lookup → character system prompt → completion → cache store.
  Backend failures return the character's fallback line and are not cached.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from dimensional_chat.cache import ResponseCache, cache_key
from dimensional_chat.context import ContextStore
from dimensional_chat.continuity import continuation_speaker, should_continue
from dimensional_chat.llm import Completion, ServiceError
from dimensional_chat.models import GroupReply, HistoryEntry, SingleReply
from dimensional_chat.normalizer import enforce_persona_constraints
from dimensional_chat.personas import (
    CHARACTER_PROMPTS,
    DEFAULT_GROUP_FALLBACK,
    DEFAULT_SINGLE_FALLBACK,
    GENERIC_ASSISTANT_PROMPT,
    GROUP_FALLBACKS,
    SINGLE_FALLBACKS,
    get_group,
)
from dimensional_chat.prompts import build_group_prompt, build_messages
from dimensional_chat.selection import select_speaker

logger = logging.getLogger(__name__)

GROUP_HISTORY_WINDOW = 8
SINGLE_MAX_TOKENS = 500


def group_fallback_reply(speaker: str, rng: random.Random | None = None) -> str:
    lines = GROUP_FALLBACKS.get(speaker)
    if not lines:
        return DEFAULT_GROUP_FALLBACK
    return (rng or random).choice(lines)


def single_fallback_reply(character: str) -> str:
    return SINGLE_FALLBACKS.get(character, DEFAULT_SINGLE_FALLBACK)


async def process_group_message(
    *,
    user_id: str,
    group_id: str,
    message: str,
    history: Sequence[HistoryEntry],
    contexts: ContextStore,
    completion: Completion,
    rng: random.Random | None = None,
) -> GroupReply:
    """Run one group turn and return the chosen speaker with their reply.

    rng drives the weighted draw, fallback lines and terse stock replies, so
    it needs both random() and choice(). Pass a seeded random.Random in tests.
    """
    group = get_group(group_id)

    # ── Decide who speaks ──
    async with contexts.lock(user_id, group_id):
        context = contexts.get(user_id, group_id)
        continued = should_continue(context, message)
        speaker = continuation_speaker(context) if continued else None
        if speaker is None or speaker not in group.members:
            if continued:
                logger.info(f"Continuation speaker {speaker!r} unavailable in {group_id}, reselecting")
            continued = False
            speaker = select_speaker(group, message, history, rng)
            logger.info(f"Selected new speaker {speaker} in {group_id}")
        else:
            logger.info(f"Continuing with {speaker} in {group_id}")

    # ── Generate ──
    member = group.details[speaker]
    system_prompt = build_group_prompt(speaker, member.prompt, message, history, group_id)
    messages = build_messages(history, message, window=GROUP_HISTORY_WINDOW)

    try:
        result = await completion(system_prompt, messages, member.max_tokens)
    except ServiceError as e:
        logger.warning(f"Completion failed for {speaker} in {group_id} ({e.kind}): {e}")
        reply = GroupReply(
            speaker=speaker,
            reply=group_fallback_reply(speaker, rng),
            used_fallback=True,
            continued=continued,
            error=e.user_message,
        )
    else:
        reply = GroupReply(
            speaker=speaker,
            reply=enforce_persona_constraints(result.text, speaker, rng),
            continued=continued,
            usage=result.usage,
        )
        logger.debug("reply speaker=%s text=%s", speaker, reply.reply)

    # ── Record the turn ──
    async with contexts.lock(user_id, group_id):
        contexts.update(user_id, group_id, speaker, message)

    return reply


async def process_single_message(
    *,
    character: str,
    message: str,
    history: Sequence[HistoryEntry],
    completion: Completion,
    cache: ResponseCache,
) -> SingleReply:
    """Run one single-character turn, serving repeated requests from cache."""
    key = cache_key(character, message, history)
    cached = cache.get(key)
    if cached is not None:
        logger.debug("cache hit character=%s", character)
        return SingleReply(reply=cached, cached=True)

    system_prompt = CHARACTER_PROMPTS.get(character, GENERIC_ASSISTANT_PROMPT)
    messages = build_messages(history, message)

    try:
        result = await completion(system_prompt, messages, SINGLE_MAX_TOKENS)
    except ServiceError as e:
        logger.warning(f"Completion failed for {character} ({e.kind}): {e}")
        return SingleReply(
            reply=single_fallback_reply(character),
            used_fallback=True,
            error=e.user_message,
        )

    cache.set(key, result.text)
    return SingleReply(reply=result.text, usage=result.usage)
