"""
AuthCore - Session Registry

In-memory store of active sessions, reachable by session id or by
refresh token.

The session map is the single source of truth; the refresh-token index
only maps tokens to session ids and is maintained on every mutation.
All check-then-act sequences run under one lock.
"""

from datetime import datetime
from threading import RLock
from typing import Dict, List, Optional

from authcore.auth.models import Session


class DuplicateSessionError(Exception):
    """Raised when a session id or refresh token is already registered."""
    pass


class SessionRegistry:
    """
    Thread-safe session map with a secondary refresh-token index.

    Reads return copies, so callers never hold a reference to the
    registry's mutable records.
    """

    def __init__(self):
        self._lock = RLock()
        self._sessions: Dict[str, Session] = {}
        self._by_refresh_token: Dict[str, str] = {}

    def add(self, session: Session) -> None:
        """
        Register a new session under both indexes.

        Raises:
            DuplicateSessionError: If the id or refresh token is taken
        """
        with self._lock:
            if session.session_id in self._sessions:
                raise DuplicateSessionError("Session id already registered")
            if session.refresh_token in self._by_refresh_token:
                raise DuplicateSessionError("Refresh token already registered")
            self._sessions[session.session_id] = session.model_copy()
            self._by_refresh_token[session.refresh_token] = session.session_id

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy() if session else None

    def get_by_refresh_token(self, refresh_token: str) -> Optional[Session]:
        with self._lock:
            session_id = self._by_refresh_token.get(refresh_token)
            if session_id is None:
                return None
            return self._sessions[session_id].model_copy()

    def touch(self, session_id: str, when: datetime) -> Optional[Session]:
        """
        Set last_used_at if the session still exists.

        Never moves last_used_at backwards.

        Returns:
            Updated copy, or None if the session is gone
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if when > session.last_used_at:
                session.last_used_at = when
            return session.model_copy()

    def touch_by_refresh_token(self, refresh_token: str, when: datetime) -> Optional[Session]:
        with self._lock:
            session_id = self._by_refresh_token.get(refresh_token)
            if session_id is None:
                return None
            return self.touch(session_id, when)

    def remove(self, session_id: str) -> Optional[Session]:
        """Remove a session from both indexes. Returns it, or None if absent."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is not None:
                self._by_refresh_token.pop(session.refresh_token, None)
            return session

    def remove_by_user(self, user_id: str) -> List[Session]:
        with self._lock:
            doomed = [s for s in self._sessions.values() if s.user_id == user_id]
            for session in doomed:
                del self._sessions[session.session_id]
                self._by_refresh_token.pop(session.refresh_token, None)
            return doomed

    def remove_created_before(self, cutoff: datetime) -> List[Session]:
        """Remove every session created strictly before cutoff. Returns them."""
        with self._lock:
            doomed = [s for s in self._sessions.values() if s.created_at < cutoff]
            for session in doomed:
                del self._sessions[session.session_id]
                self._by_refresh_token.pop(session.refresh_token, None)
            return doomed

    def for_user(self, user_id: str) -> List[Session]:
        with self._lock:
            return [s.model_copy() for s in self._sessions.values() if s.user_id == user_id]

    def all(self) -> List[Session]:
        with self._lock:
            return [s.model_copy() for s in self._sessions.values()]

    def clear(self) -> int:
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
            self._by_refresh_token.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
