"""Session ids, inactivity expiry, and the daily prayer quota.

A session maps an opaque hex id to a generated user id. Sessions expire
after `timeout` seconds without activity; every successful lookup refreshes
the activity timestamp. The prayer counter resets 24 hours after its last
reset.
"""

from __future__ import annotations

import logging
import secrets
import time
import uuid
from collections.abc import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TIMEOUT = 24 * 60 * 60
PRAYER_RESET_INTERVAL = 24 * 60 * 60
DEFAULT_PRAYER_LIMIT = 3


class Session(BaseModel):
    user_id: str
    created_at: float
    last_activity: float
    prayer_count: int = 0
    last_prayer_reset: float


def new_user_id() -> str:
    return f"user_{uuid.uuid4().hex[:12]}"


class SessionManager:
    def __init__(
        self,
        timeout: float = DEFAULT_SESSION_TIMEOUT,
        prayer_limit: int = DEFAULT_PRAYER_LIMIT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._timeout = timeout
        self._prayer_limit = prayer_limit
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def create(self, user_id: str | None = None) -> tuple[str, Session]:
        """Start a session for user_id (a fresh id if omitted). Returns (session_id, session)."""
        now = self._clock()
        session_id = secrets.token_hex(16)
        session = Session(
            user_id=user_id or new_user_id(),
            created_at=now,
            last_activity=now,
            last_prayer_reset=now,
        )
        self._sessions[session_id] = session
        logger.debug("session created id=%s user=%s", session_id, session.user_id)
        return session_id, session

    def _expired(self, session: Session, now: float) -> bool:
        return now - session.last_activity > self._timeout

    def get(self, session_id: str) -> Session | None:
        """Return the live session and mark it active, or None if unknown or expired.

        Expired sessions stay stored until cleanup_expired() so their users
        are reported for purging.
        """
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = self._clock()
        if self._expired(session, now):
            return None
        session.last_activity = now
        return session

    def resolve(self, session_id: str | None) -> tuple[str, Session]:
        """Return the session for session_id, creating a new one when missing or expired."""
        if session_id:
            session = self.get(session_id)
            if session is not None:
                return session_id, session
        return self.create()

    def cleanup_expired(self) -> list[str]:
        """Drop expired sessions. Returns user ids left with no live session."""
        now = self._clock()
        expired = [sid for sid, s in self._sessions.items() if self._expired(s, now)]
        expired_users = {self._sessions.pop(sid).user_id for sid in expired}
        live_users = {s.user_id for s in self._sessions.values()}
        user_ids = sorted(expired_users - live_users)
        if expired:
            logger.info(f"Removed {len(expired)} expired sessions")
        return user_ids

    def __len__(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Prayers
    # ------------------------------------------------------------------

    def _maybe_reset_prayers(self, session: Session) -> None:
        now = self._clock()
        if now - session.last_prayer_reset > PRAYER_RESET_INTERVAL:
            session.prayer_count = 0
            session.last_prayer_reset = now

    def remaining_prayers(self, session_id: str) -> int:
        session = self.get(session_id)
        if session is None:
            return self._prayer_limit
        self._maybe_reset_prayers(session)
        return max(0, self._prayer_limit - session.prayer_count)

    def record_prayer(self, session_id: str) -> int | None:
        """Consume one prayer. Returns prayers left, or None if the quota was already used up."""
        session = self.get(session_id)
        if session is None:
            return None
        self._maybe_reset_prayers(session)
        if session.prayer_count >= self._prayer_limit:
            return None
        session.prayer_count += 1
        return self._prayer_limit - session.prayer_count
