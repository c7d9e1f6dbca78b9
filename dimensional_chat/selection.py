"""Speaker selection for group chats.

A mentioned member always wins. Otherwise each member is scored and one is
drawn by weighted lottery:

  base        (10 - min(recent_count, 10)) * 3   fewer recent lines → higher
  keywords    +8 per SCORING_KEYWORDS hit in the lower-cased message
  repetition  -5 if the member spoke last in the recent window
  adjustment  SCORE_ADJUSTMENTS[member]
  floor       1

recent_count and "spoke last" both come from the last RECENT_WINDOW history
entries, but only persona messages with a speaker label count.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import Protocol

from dimensional_chat.extractors import get_mentioned_personas
from dimensional_chat.models import GroupDefinition, HistoryEntry, ScoredCandidate
from dimensional_chat.personas import SCORE_ADJUSTMENTS, SCORING_KEYWORDS

logger = logging.getLogger(__name__)

RECENT_WINDOW = 8
MAX_RECENCY = 10
RECENCY_WEIGHT = 3
KEYWORD_BONUS = 8
REPEAT_PENALTY = 5
MIN_SCORE = 1


class RandomSource(Protocol):
    def random(self) -> float: ...


class SelectionExhausted(RuntimeError):
    """Raised when no member can be selected. Means the group table is broken."""


def recent_speakers(history: Sequence[HistoryEntry]) -> list[str]:
    """Speaker labels of persona messages within the recent window, oldest first."""
    return [
        entry.speaker
        for entry in history[-RECENT_WINDOW:]
        if not entry.is_user and entry.speaker
    ]


def _recency_counts(members: Sequence[str], speakers: list[str]) -> dict[str, int]:
    counts = {member: 0 for member in members}
    for speaker in speakers:
        if speaker in counts:
            counts[speaker] += 1
    return counts


def score_members(
    group: GroupDefinition, message: str, history: Sequence[HistoryEntry]
) -> list[ScoredCandidate]:
    """Score every member of the group, in group order."""
    speakers = recent_speakers(history)
    counts = _recency_counts(group.members, speakers)
    last_speaker = speakers[-1] if speakers else None
    message_lower = message.lower()

    candidates = []
    for member in group.members:
        score = (MAX_RECENCY - min(counts[member], MAX_RECENCY)) * RECENCY_WEIGHT
        for keyword in SCORING_KEYWORDS.get(member, ()):
            if keyword.lower() in message_lower:
                score += KEYWORD_BONUS
        if member == last_speaker:
            score -= REPEAT_PENALTY
        score += SCORE_ADJUSTMENTS.get(member, 0)
        candidates.append(ScoredCandidate(persona=member, score=max(score, MIN_SCORE)))
    return candidates


def weighted_choice(
    candidates: Sequence[ScoredCandidate], rng: RandomSource | None = None
) -> str | None:
    """Draw one candidate with probability score / total. None only on float edge cases."""
    rng = rng or random
    total = sum(c.score for c in candidates)
    r = rng.random() * total
    for candidate in candidates:
        r -= candidate.score
        if r <= 0:
            return candidate.persona
    return None


def _least_recent(group: GroupDefinition, history: Sequence[HistoryEntry]) -> str:
    counts = _recency_counts(group.members, recent_speakers(history))
    # min() keeps the first of equal counts, i.e. group order
    return min(group.members, key=lambda m: counts[m])


def select_speaker(
    group: GroupDefinition,
    message: str,
    history: Sequence[HistoryEntry],
    rng: RandomSource | None = None,
) -> str:
    """Pick the member who replies to message."""
    if not group.members:
        raise SelectionExhausted(f"Group {group.name!r} has no members")

    for persona in get_mentioned_personas(message):
        if persona in group.members:
            logger.info(f"Mentioned {persona} in {group.name}, selecting directly")
            return persona

    candidates = score_members(group, message, history)
    logger.debug(
        "scores group=%s %s", group.name,
        ", ".join(f"{c.persona}={c.score}" for c in candidates),
    )

    chosen = weighted_choice(candidates, rng)
    if chosen is None:
        chosen = _least_recent(group, history)
        logger.warning(f"Weighted draw fell through in {group.name}, using {chosen}")
    return chosen
