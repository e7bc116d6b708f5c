"""Organization Copilot usage lookup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from copilot_metrics.github.http import (
    ForbiddenError,
    GitHubHTTPError,
    NotFoundError,
    RateLimitExceeded,
    UpstreamFailureError,
)

if TYPE_CHECKING:
    from copilot_metrics.github.rest import RestClient

logger = logging.getLogger(__name__)


async def get_organization_usage(rest: RestClient, org: str) -> dict[str, Any]:
    """Fetch an organization's Copilot billing summary.

    Args:
        rest: REST client bound to the caller's credential.
        org: Organization login.

    Returns:
        The upstream billing document (``seat_breakdown``,
        ``seat_management_setting``, ...).

    Raises:
        NotFoundError: The organization does not exist or has no Copilot.
        ForbiddenError: Upstream answered 403, including 403 with the quota
            exhausted.
        UpstreamFailureError: Any other failure.
    """
    try:
        data = await rest.get_copilot_billing(org)
    except RateLimitExceeded as e:
        # Any 403 is a permission answer here, even with the quota exhausted
        if e.status_code == 403:
            raise ForbiddenError(e.message, e.status_code, e.url) from e
        raise UpstreamFailureError(e.message, e.status_code, e.url) from e
    except (NotFoundError, ForbiddenError):
        raise
    except GitHubHTTPError as e:
        logger.error("Copilot billing fetch failed for %s: %s", org, e)
        raise UpstreamFailureError(e.message, e.status_code, e.url) from e

    if not isinstance(data, dict):
        raise UpstreamFailureError(f"Unexpected billing payload for {org}", url=f"/orgs/{org}")
    return data
