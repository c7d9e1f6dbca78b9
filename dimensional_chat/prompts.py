"""Handlebars prompt rendering for group speakers and chat message lists."""

from collections.abc import Callable, Sequence
from typing import Any

import pybars

from dimensional_chat.models import HistoryEntry
from dimensional_chat.personas import GENERIC_PERSONA_TEMPLATE, PERSONA_TEMPLATES

_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}

HISTORY_PROMPT_WINDOW = 6
EMPTY_HISTORY_TEXT = "这是对话的开始"
USER_LABEL = "用户"
UNKNOWN_SPEAKER_LABEL = "角色"

# Entries carry their own trailing newline.
HISTORY_TEMPLATE = "最近的对话：\n{{#last entries window}}{{{line}}}{{/last}}"


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


# ── Custom Handlebars helpers ────────────────────────────


def _helper_last(this, options, items, count):
    """{{#last array N}}...{{/last}}: iterate over the last N items."""
    result = []
    for item in list(items)[-int(count):]:
        result.extend(options["fn"](item))
    return result


_HELPERS: dict[str, Callable] = {
    "last": _helper_last,
}


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context, helpers=_HELPERS))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


# ── History formatting ───────────────────────────────────


def _label(entry: HistoryEntry) -> str:
    if entry.is_user:
        return USER_LABEL
    return entry.speaker or UNKNOWN_SPEAKER_LABEL


def format_history(history: Sequence[HistoryEntry]) -> str:
    """Render the last six entries as "<label>: <text>" lines."""
    if not history:
        return EMPTY_HISTORY_TEXT
    entries = [{"line": f"{_label(e)}: {e.text}\n"} for e in history]
    return render_prompt(HISTORY_TEMPLATE, {"entries": entries, "window": HISTORY_PROMPT_WINDOW})


# ── Prompt assembly ──────────────────────────────────────


def build_group_prompt(
    persona: str,
    base_prompt: str,
    message: str,
    history: Sequence[HistoryEntry],
    group_id: str,
) -> str:
    """System prompt for persona replying inside group_id.

    Uses the persona's own template when one exists, otherwise the generic
    template wrapped around base_prompt.
    """
    template = PERSONA_TEMPLATES.get(persona, GENERIC_PERSONA_TEMPLATE)
    return render_prompt(template, {
        "speaker": persona,
        "base_prompt": base_prompt,
        "group": group_id,
        "history": format_history(history),
        "message": message,
    })


def build_messages(
    history: Sequence[HistoryEntry],
    message: str,
    window: int | None = None,
) -> list[dict[str, str]]:
    """Ordered chat messages after the system prompt: history (optionally windowed), then message."""
    recent = history[-window:] if window else history
    messages: list[dict[str, str]] = []
    for entry in recent:
        messages.append({
            "role": "user" if entry.is_user else "assistant",
            "content": entry.text,
        })
    messages.append({"role": "user", "content": message})
    return messages
