"""
Per-session connection state.

Each logical session owns the connection string it opened with; the
registry maps session ids to that state. No entry means the session is
disconnected. Sessions unused for `SESSION_IDLE_SECONDS` are dropped.
"""
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from app.core.config import settings
from app.core.exceptions import ConnectivityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    session_id: str
    connection_string: str
    opened_at: datetime


def new_session_id() -> str:
    """Random URL-safe token for clients that do not bring their own id"""
    return secrets.token_urlsafe(16)


class SessionRegistry:
    """Thread-safe map of session id -> SessionState"""

    def __init__(
        self,
        max_sessions: Optional[int] = None,
        idle_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self._max_sessions = max_sessions or settings.MAX_SESSIONS
        self._idle_seconds = idle_seconds or settings.SESSION_IDLE_SECONDS
        self._clock = clock
        self._states: Dict[str, SessionState] = {}
        self._last_used: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _expire_idle(self, now: float) -> None:
        # caller holds the lock
        expired = [
            sid for sid, used in self._last_used.items()
            if now - used >= self._idle_seconds
        ]
        for sid in expired:
            del self._states[sid]
            del self._last_used[sid]
        if expired:
            logger.info(f"[session] expired {len(expired)} idle session(s)")

    def open(self, session_id: str, connection_string: str) -> SessionState:
        """
        Commit a connection string for the session.

        Must only be called after a successful probe. Replaces any previous
        string for the same session.
        """
        if not connection_string or not connection_string.strip():
            raise ValueError("connection_string must not be empty")

        state = SessionState(
            session_id=session_id,
            connection_string=connection_string,
            opened_at=datetime.now(tz=timezone.utc),
        )
        with self._lock:
            now = self._clock()
            self._expire_idle(now)
            if session_id not in self._states and len(self._states) >= self._max_sessions:
                raise ConnectivityError(
                    f"Session limit reached ({self._max_sessions}); close an existing session first."
                )
            self._states[session_id] = state
            self._last_used[session_id] = now
        logger.info(f"[session] opened session {session_id[:8]}...")
        return state

    def close(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        with self._lock:
            removed = self._states.pop(session_id, None)
            self._last_used.pop(session_id, None)
        if removed is not None:
            logger.info(f"[session] closed session {session_id[:8]}...")

    def status(self, session_id: Optional[str]) -> Optional[SessionState]:
        """Session state, or None; a hit counts as activity"""
        if not session_id:
            return None
        with self._lock:
            now = self._clock()
            self._expire_idle(now)
            state = self._states.get(session_id)
            if state is not None:
                self._last_used[session_id] = now
            return state

    def current(self, session_id: Optional[str]) -> Optional[str]:
        """Snapshot of the session's connection string, or None"""
        state = self.status(session_id)
        return state.connection_string if state else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


# Single source of truth for query execution and catalog listing
sessions = SessionRegistry()
