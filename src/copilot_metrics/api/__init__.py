"""HTTP boundary: OAuth login, session and dashboard endpoints."""

from copilot_metrics.api.app import create_app
from copilot_metrics.api.deps import ApiError
from copilot_metrics.api.oauth import OAuthError
from copilot_metrics.api.sessions import InMemorySessionStore, SessionData, SessionStore

__all__ = [
    "ApiError",
    "InMemorySessionStore",
    "OAuthError",
    "SessionData",
    "SessionStore",
    "create_app",
]
