"""Topic and mention detection over free-text user messages.

Both functions are plain substring scans over the static keyword tables in
personas.py. Matching is case-sensitive; list order decides which match wins.
"""

from dimensional_chat.personas import MENTION_ALIASES, TOPICS


def extract_topic(text: str) -> str | None:
    """Return the first TOPICS keyword contained in text, or None.

    Priority follows TOPICS order, not position in the text.
    """
    for topic in TOPICS:
        if topic in text:
            return topic
    return None


def get_mentioned_personas(text: str) -> list[str]:
    """Return personas referenced by any of their aliases, in MENTION_ALIASES order."""
    mentioned: list[str] = []
    for persona, aliases in MENTION_ALIASES:
        if any(alias in text for alias in aliases):
            mentioned.append(persona)
    return mentioned
