"""FastAPI application factory."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from copilot_metrics import __version__
from copilot_metrics.api.deps import ApiError, api_error_handler
from copilot_metrics.api.routes import api_router, auth_router
from copilot_metrics.api.sessions import InMemorySessionStore, SessionStore
from copilot_metrics.config import Config
from copilot_metrics.usage import InMemoryUsageStore, UsageStore

logger = logging.getLogger(__name__)


def create_app(
    config: Config | None = None,
    usage_store: UsageStore | None = None,
    session_store: SessionStore | None = None,
) -> FastAPI:
    """Build the dashboard API.

    Args:
        config: Application configuration. Defaults are used if None.
        usage_store: Store for self-reported usage counters. A fresh
            in-memory store is used if None.
        session_store: Store for login sessions (token and profile). A fresh
            in-memory store expiring after the session max age is used if None.

    Returns:
        Configured FastAPI application.
    """
    config = config or Config()

    app = FastAPI(title="Copilot Metrics Dashboard", version=__version__)
    app.state.config = config
    if usage_store is None:
        usage_store = InMemoryUsageStore()
    if session_store is None:
        session_store = InMemorySessionStore(max_age_seconds=config.server.session_max_age_seconds)
    app.state.usage_store = usage_store
    app.state.session_store = session_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=config.server.session_secret,
        max_age=config.server.session_max_age_seconds,
        same_site="lax",
        https_only=config.server.session_https_only,
    )
    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]

    app.include_router(auth_router)
    app.include_router(api_router)

    if not config.github.oauth.is_configured:
        logger.warning(
            "GitHub OAuth credentials not configured. Set %s and %s.",
            config.github.oauth.client_id_env,
            config.github.oauth.client_secret_env,
        )

    return app
