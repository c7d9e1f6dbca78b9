"""Post-processing of model replies to enforce hard persona constraints.

Only terse personas are rewritten: emoji stripped, cut to 20 characters plus
an ellipsis, and replaced by a stock line if still too long. Every reply is
whitespace-trimmed.
"""

import logging
import random
import re

from dimensional_chat.personas import TERSE_PERSONAS, TERSE_STOCK_REPLIES

logger = logging.getLogger(__name__)

TERSE_MAX_CHARS = 20
TERSE_HARD_LIMIT = 25
ELLIPSIS = "…"

_EMOJI_RE = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map
    "\U0001F1E0-\U0001F1FF"  # flags
    "\U0001F900-\U0001F9FF"  # supplemental symbols & pictographs
    "]"
)


def strip_emoji(text: str) -> str:
    return _EMOJI_RE.sub("", text)


def enforce_persona_constraints(reply: str, persona: str, rng=None) -> str:
    if persona not in TERSE_PERSONAS:
        return reply.strip()

    rng = rng or random
    text = strip_emoji(reply).strip()
    if len(text) > TERSE_MAX_CHARS:
        text = text[:TERSE_MAX_CHARS] + ELLIPSIS
    if len(text) > TERSE_HARD_LIMIT:
        text = rng.choice(TERSE_STOCK_REPLIES)
        logger.debug("terse reply for %s replaced with stock line", persona)
    return text.strip()
