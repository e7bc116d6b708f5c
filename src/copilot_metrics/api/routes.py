"""Dashboard, OAuth and usage endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import RedirectResponse

from copilot_metrics.api.deps import (
    SESSION_ID_KEY,
    ApiError,
    current_session,
    get_config,
    get_credential,
    get_rest_client,
    get_session_store,
    get_session_user,
    get_usage_store,
)
from copilot_metrics.api.oauth import OAuthError, authorize_url, exchange_code
from copilot_metrics.api.sessions import SessionData, SessionStore, new_session_id
from copilot_metrics.collect import (
    collect_full_data,
    get_activity_metrics,
    get_organization_usage,
)
from copilot_metrics.config import Config
from copilot_metrics.github.auth import AuthenticationError, Credential, Identity
from copilot_metrics.github.http import (
    ForbiddenError,
    GitHubClient,
    GitHubHTTPError,
    NotFoundError,
)
from copilot_metrics.github.rest import RestClient
from copilot_metrics.models import ActivityMetrics, FullData
from copilot_metrics.usage import CopilotUsageRecord, UsageStore

logger = logging.getLogger(__name__)

auth_router = APIRouter(tags=["auth"])
api_router = APIRouter(prefix="/api", tags=["dashboard"])


@auth_router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# ============================================================================
# OAUTH
# ============================================================================


@auth_router.get("/auth/github")
async def login(config: Config = Depends(get_config)) -> RedirectResponse:
    if not config.github.oauth.is_configured:
        raise ApiError(500, "GitHub OAuth credentials not configured")
    return RedirectResponse(authorize_url(config.github), status_code=302)


@auth_router.get("/auth/callback")
async def callback(
    request: Request,
    code: str | None = None,
    config: Config = Depends(get_config),
    sessions: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    """Finish the OAuth flow and store the token and profile server-side.

    The cookie only receives a fresh session id.
    """
    if not code:
        return RedirectResponse("/?error=no_code", status_code=302)

    try:
        token = await exchange_code(code, config.github)
    except OAuthError as e:
        logger.warning("OAuth exchange returned no token: %s", e)
        return RedirectResponse("/?error=no_token", status_code=302)
    except GitHubHTTPError as e:
        logger.error("OAuth error: %s", e)
        return RedirectResponse("/?error=auth_failed", status_code=302)

    try:
        async with GitHubClient(
            Credential(token),
            timeout=config.github.timeout_seconds,
            base_url=config.github.api_url,
        ) as client:
            user = await RestClient(client).get_user()
    except (GitHubHTTPError, AuthenticationError) as e:
        logger.error("OAuth error: %s", e)
        return RedirectResponse("/?error=auth_failed", status_code=302)

    previous = request.session.get(SESSION_ID_KEY)
    if previous:
        sessions.delete(previous)

    session_id = new_session_id()
    sessions.put(session_id, SessionData(access_token=token, user=user))
    request.session[SESSION_ID_KEY] = session_id
    logger.info("User %s logged in", user.get("login"))
    return RedirectResponse("/dashboard.html", status_code=302)


@auth_router.get("/auth/logout")
async def logout(
    request: Request,
    sessions: SessionStore = Depends(get_session_store),
) -> RedirectResponse:
    session_id = request.session.get(SESSION_ID_KEY)
    if session_id:
        sessions.delete(session_id)
    request.session.clear()
    return RedirectResponse("/", status_code=302)


@api_router.get("/auth/status")
async def auth_status(request: Request) -> dict[str, Any]:
    session = current_session(request)
    if session is not None and session.access_token:
        return {"authenticated": True, "user": session.user}
    return {"authenticated": False}


# ============================================================================
# GITHUB DATA
# ============================================================================


@api_router.get("/user")
async def user_profile(rest: RestClient = Depends(get_rest_client)) -> Any:
    try:
        return await rest.get_user()
    except GitHubHTTPError as e:
        logger.error("User fetch error: %s", e)
        raise ApiError(500, "Failed to fetch user data") from e


@api_router.get("/repos")
async def recent_repos(rest: RestClient = Depends(get_rest_client)) -> Any:
    try:
        return await rest.list_recent_repos(limit=20)
    except GitHubHTTPError as e:
        logger.error("Repos fetch error: %s", e)
        raise ApiError(500, "Failed to fetch repos") from e


@api_router.get("/orgs")
async def organizations(rest: RestClient = Depends(get_rest_client)) -> Any:
    try:
        return await rest.list_orgs()
    except GitHubHTTPError as e:
        logger.error("Orgs fetch error: %s", e)
        raise ApiError(500, "Failed to fetch organizations") from e


@api_router.get("/activity", response_model=ActivityMetrics)
async def activity(
    credential: Credential = Depends(get_credential),
    rest: RestClient = Depends(get_rest_client),
    config: Config = Depends(get_config),
) -> ActivityMetrics:
    identity = credential.identity or Identity(login=None)
    try:
        return await get_activity_metrics(rest, identity, config.activity)
    except GitHubHTTPError as e:
        logger.error("Activity fetch error: %s", e)
        raise ApiError(500, "Failed to fetch activity data") from e


@api_router.get("/copilot/org/{org}")
async def organization_usage(org: str, rest: RestClient = Depends(get_rest_client)) -> Any:
    try:
        return await get_organization_usage(rest, org)
    except NotFoundError as e:
        raise ApiError(404, "Organization not found or no Copilot access") from e
    except ForbiddenError as e:
        raise ApiError(403, "No permission to access Copilot data for this organization") from e
    except GitHubHTTPError as e:
        raise ApiError(500, "Failed to fetch Copilot data") from e


@api_router.get("/full", response_model=FullData)
async def full_data(
    rest: RestClient = Depends(get_rest_client),
    user: dict[str, Any] = Depends(get_session_user),
    config: Config = Depends(get_config),
) -> FullData:
    try:
        return await collect_full_data(rest, fallback_user=user, config=config)
    except GitHubHTTPError as e:
        logger.error("Full data fetch error: %s", e)
        raise ApiError(500, "Failed to fetch full GitHub data", details=str(e)) from e


# ============================================================================
# SELF-REPORTED USAGE
# ============================================================================


@api_router.post("/copilot/usage")
async def save_usage(
    payload: dict[str, Any] | None = Body(default=None),
    user: dict[str, Any] = Depends(get_session_user),
    store: UsageStore = Depends(get_usage_store),
) -> dict[str, Any]:
    record = CopilotUsageRecord.from_input(payload or {})
    store.put(user["login"], record)
    return record.model_dump(by_alias=True)


@api_router.get("/copilot/usage")
async def read_usage(
    user: dict[str, Any] = Depends(get_session_user),
    store: UsageStore = Depends(get_usage_store),
) -> dict[str, Any]:
    record = store.get(user["login"]) or CopilotUsageRecord()
    return record.to_response()
