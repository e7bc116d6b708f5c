"""Full profile collection.

Gathers the user's profile, social lists, every repository with its detail
record, and recent events into one ``FullData`` document.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

from copilot_metrics.collect.batch import get_repository_details
from copilot_metrics.config import Config
from copilot_metrics.github.http import GitHubHTTPError
from copilot_metrics.models import FullData, RepositorySummary

if TYPE_CHECKING:
    from copilot_metrics.github.rest import RestClient

logger = logging.getLogger(__name__)


async def _or_default(call: Awaitable[Any], default: Any, label: str) -> Any:
    try:
        return await call
    except GitHubHTTPError as e:
        logger.warning("Could not fetch %s: %s", label, e)
        return default


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


async def collect_full_data(
    rest: RestClient,
    fallback_user: dict[str, Any] | None = None,
    config: Config | None = None,
) -> FullData:
    """Collect everything shown on the dashboard's full view.

    Profile and social lists are fetched concurrently and degrade to empty
    (or to ``fallback_user`` for the profile). The repository list is
    required; events are optional.

    Args:
        rest: REST client bound to the caller's credential.
        fallback_user: Profile to use if ``GET /user`` fails (the session copy).
        config: Application configuration. Defaults are used if None.

    Returns:
        FullData with every collection present.

    Raises:
        GitHubHTTPError: If the repository list cannot be fetched.
    """
    config = config or Config()

    user, orgs, gists, starred, followers, following = await asyncio.gather(
        _or_default(rest.get_user(), None, "user"),
        _or_default(rest.list_orgs(), [], "orgs"),
        _or_default(rest.list_gists(), [], "gists"),
        _or_default(rest.list_starred(), [], "starred"),
        _or_default(rest.list_followers(), [], "followers"),
        _or_default(rest.list_following(), [], "following"),
    )
    user = user if isinstance(user, dict) else fallback_user

    repos = await rest.list_all_repos()
    logger.info("Collecting full data across %d repositories", len(repos))

    events: list[Any] = []
    if user and user.get("login"):
        events = await _or_default(rest.list_user_events(user["login"]), [], "events")

    summaries = [RepositorySummary.from_api(r) for r in repos if isinstance(r, dict)]
    details = await get_repository_details(rest, summaries, config.batching)

    return FullData(
        user=user,
        orgs=_as_list(orgs),
        gists=_as_list(gists),
        starred=_as_list(starred),
        followers=_as_list(followers),
        following=_as_list(following),
        repos=repos,
        repo_details=details,
        events=_as_list(events),
    )
