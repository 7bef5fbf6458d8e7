"""In-process session store."""

import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.database import utcnow


@dataclass
class SessionData:
    """Projection of the logged-in user kept server-side."""

    user_id: int
    name: str
    email: str
    expires_at: datetime


class SessionStore:
    """Maps opaque session ids to user projections.

    Entries live in process memory only, so they vanish on restart and are
    not shared between workers.
    """

    def __init__(self, expire_minutes: int = 60, now: Callable[[], datetime] = utcnow) -> None:
        self.expire_minutes = expire_minutes
        self._now = now
        self._sessions: dict[str, SessionData] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int, name: str, email: str) -> str:
        """Start a session and return its id."""
        session_id = secrets.token_urlsafe(32)
        data = SessionData(
            user_id=user_id,
            name=name,
            email=email,
            expires_at=self._now() + timedelta(minutes=self.expire_minutes),
        )
        with self._lock:
            self._sessions[session_id] = data
        return session_id

    def read(self, session_id: str) -> SessionData | None:
        """Return the session, or None if unknown or expired. Expired entries are evicted."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return None
            if data.expires_at <= self._now():
                del self._sessions[session_id]
                return None
            return data

    def refresh(self, session_id: str, name: str, email: str) -> None:
        """Update the cached projection after a profile change."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is not None:
                data.name = name
                data.email = email

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def destroy_user(self, user_id: int) -> int:
        """Drop every session belonging to a user. Returns how many were removed."""
        with self._lock:
            stale = [sid for sid, data in self._sessions.items() if data.user_id == user_id]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
