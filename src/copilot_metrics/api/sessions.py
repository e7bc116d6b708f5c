"""Server-side login sessions.

The signed session cookie carries only a random session id. The access token
and the GitHub profile stay in a ``SessionStore`` on the server.
"""

import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Protocol


def new_session_id() -> str:
    """Unguessable id for the session cookie."""
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class SessionData:
    """What a logged-in session holds."""

    access_token: str
    user: dict[str, Any]
    created_at: float = field(default_factory=time.time)


class SessionStore(Protocol):
    """Key-value storage for login sessions, keyed by session id."""

    def get(self, session_id: str) -> SessionData | None: ...

    def put(self, session_id: str, data: SessionData) -> None: ...

    def delete(self, session_id: str) -> None: ...


class InMemorySessionStore:
    """Process-lifetime session store with age-based expiry."""

    def __init__(self, max_age_seconds: float | None = None) -> None:
        """Initialize the store.

        Args:
            max_age_seconds: Sessions older than this read as absent. None
                keeps them for the life of the process.
        """
        self._max_age = max_age_seconds
        self._sessions: dict[str, SessionData] = {}

    def get(self, session_id: str) -> SessionData | None:
        data = self._sessions.get(session_id)
        if data is None:
            return None
        if self._max_age is not None and time.time() - data.created_at > self._max_age:
            del self._sessions[session_id]
            return None
        return data

    def put(self, session_id: str, data: SessionData) -> None:
        self._sessions[session_id] = data

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
