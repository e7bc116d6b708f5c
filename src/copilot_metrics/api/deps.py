"""Request dependencies and error payloads for the HTTP API."""

from collections.abc import AsyncIterator
from typing import Any

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from copilot_metrics.api.sessions import SessionData, SessionStore
from copilot_metrics.config import Config
from copilot_metrics.github.auth import AuthenticationError, Credential, Identity
from copilot_metrics.github.http import GitHubClient
from copilot_metrics.github.ratelimit import RateLimiter
from copilot_metrics.github.rest import RestClient
from copilot_metrics.usage import UsageStore

SESSION_ID_KEY = "sid"


class ApiError(Exception):
    """An error rendered as ``{"error": message}`` with the given status."""

    def __init__(self, status_code: int, message: str, **extra: Any) -> None:
        self.status_code = status_code
        self.message = message
        self.extra = extra
        super().__init__(message)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_usage_store(request: Request) -> UsageStore:
    return request.app.state.usage_store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def current_session(request: Request) -> SessionData | None:
    """Server-side session named by the cookie's session id, if any."""
    session_id = request.session.get(SESSION_ID_KEY)
    if not session_id:
        return None
    return get_session_store(request).get(session_id)


def get_session_user(request: Request) -> dict[str, Any]:
    """The GitHub profile stored at login.

    Raises:
        ApiError: 401 if no one is logged in.
    """
    session = current_session(request)
    if session is None or not session.user:
        raise ApiError(401, "Not authenticated")
    return session.user


def get_credential(request: Request) -> Credential:
    """Credential for the logged-in user.

    Raises:
        ApiError: 401 if the session has no usable token.
    """
    session = current_session(request)
    if session is None:
        raise ApiError(401, "Not authenticated")
    try:
        return Credential(session.access_token, Identity.from_user(session.user))
    except AuthenticationError as e:
        raise ApiError(401, "Not authenticated") from e


async def get_rest_client(
    credential: Credential = Depends(get_credential),
    config: Config = Depends(get_config),
) -> AsyncIterator[RestClient]:
    """REST client bound to the session credential for one request."""
    limiter = RateLimiter(config.rate_limit) if config.rate_limit.enabled else None
    async with GitHubClient(
        credential,
        timeout=config.github.timeout_seconds,
        base_url=config.github.api_url,
        rate_limiter=limiter,
    ) as http_client:
        yield RestClient(http_client, config.pagination)
