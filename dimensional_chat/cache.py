"""TTL response cache for single-character replies."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Any

from dimensional_chat.models import HistoryEntry

DEFAULT_TTL = 300.0


def cache_key(
    character: str,
    message: str,
    history: Sequence[HistoryEntry],
    speaker: str | None = None,
) -> str:
    """Key covering everything that shapes a reply: character, speaker, message, history."""
    history_text = "|".join(f"{e.role}:{e.text}" for e in history)
    return f"{character}:{speaker or 'default'}:{message}:{history_text}"


class ResponseCache:
    """In-memory key → value store where every entry expires after a TTL.

    Expired entries are dropped lazily on read. `clock` is injectable for tests.
    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._hits = 0
        self._misses = 0

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        expires = self._clock() + (self._ttl if ttl is None else ttl)
        self._entries[key] = (value, expires)

    def get(self, key: str) -> Any | None:
        item = self._entries.get(key)
        if item is None:
            self._misses += 1
            return None
        value, expires = item
        if self._clock() > expires:
            del self._entries[key]
            self._misses += 1
            return None
        self._hits += 1
        return value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def flush(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, int]:
        return {"keys": len(self._entries), "hits": self._hits, "misses": self._misses}
