"""GitHub OAuth web flow: authorize redirect and code exchange."""

import logging
from urllib.parse import urlencode

from copilot_metrics.config import GitHubConfig
from copilot_metrics.github.http import GitHubClient

logger = logging.getLogger(__name__)


class OAuthError(Exception):
    """Raised when GitHub does not return an access token for a code."""


def authorize_url(config: GitHubConfig) -> str:
    """URL that starts the OAuth flow on github.com."""
    query = urlencode(
        {
            "client_id": config.oauth.client_id or "",
            "redirect_uri": config.oauth.callback_url,
            "scope": " ".join(config.oauth.scopes),
        }
    )
    return f"{config.oauth_url}/login/oauth/authorize?{query}"


async def exchange_code(code: str, config: GitHubConfig) -> str:
    """Exchange an authorization code for an access token.

    Args:
        code: The ``code`` query parameter from the callback.
        config: GitHub configuration with OAuth client settings.

    Returns:
        The access token.

    Raises:
        OAuthError: If GitHub answers without a token.
        GitHubHTTPError: If the exchange request itself fails.
    """
    async with GitHubClient(base_url=config.oauth_url, timeout=config.timeout_seconds) as client:
        data = await client.post_json(
            "/login/oauth/access_token",
            json={
                "client_id": config.oauth.client_id,
                "client_secret": config.oauth.client_secret,
                "code": code,
                "redirect_uri": config.oauth.callback_url,
            },
            headers={"Accept": "application/json"},
        )

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        reason = data.get("error_description") or data.get("error") if isinstance(data, dict) else None
        raise OAuthError(reason or "No access token in response")
    return str(token)
