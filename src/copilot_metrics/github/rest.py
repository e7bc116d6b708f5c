"""GitHub REST API client with page-number pagination.

Provides the endpoint methods the dashboard needs, on top of a
``GitHubClient`` that carries the session credential. Wire details (paths,
query parameters, 100-item pages) follow the GitHub REST contract exactly.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any, cast

from copilot_metrics.config import PaginationConfig
from copilot_metrics.github.http import GitHubClient

logger = logging.getLogger(__name__)


class RestClient:
    """GitHub REST API client.

    Wraps GitHubClient to provide:
    - Page-number pagination ending on the first short page
    - A fixed pause between page fetches and a max-page safety bound
    - High-level methods for the endpoints the dashboard reads
    """

    def __init__(
        self,
        http_client: GitHubClient,
        pagination: PaginationConfig | None = None,
    ) -> None:
        """Initialize REST API client.

        Args:
            http_client: GitHubClient instance for HTTP requests.
            pagination: Pagination settings. Defaults are used if None.
        """
        self._http = http_client
        self._pagination = pagination or PaginationConfig()

    @property
    def http(self) -> GitHubClient:
        return self._http

    @property
    def pagination(self) -> PaginationConfig:
        return self._pagination

    async def iter_pages(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[list[Any]]:
        """Walk a list endpoint page by page.

        Requests ``per_page`` and ``page`` merged into the path's own query.
        Stops on a page shorter than the page size, on a payload that is not
        a list (nothing is yielded for it), or at ``max_pages``. A page that
        happens to be exactly full is followed by one more request that
        returns the empty final page.

        Args:
            path: API endpoint path, optionally with a query string.
            params: Extra query parameters.

        Yields:
            Items of each page, in API order.

        Raises:
            GitHubHTTPError: If any page request fails.
        """
        page_size = self._pagination.page_size
        page = 1

        while True:
            query = dict(params or {})
            query.update({"per_page": page_size, "page": page})

            data = await self._http.get_json(path, params=query)

            if not isinstance(data, list):
                logger.warning(
                    "Non-list payload on page %d of %s; stopping pagination", page, path
                )
                return

            yield data

            if len(data) < page_size:
                return

            if page >= self._pagination.max_pages:
                logger.warning(
                    "Reached max_pages=%d for %s; results truncated",
                    self._pagination.max_pages,
                    path,
                )
                return

            page += 1
            logger.debug("Following pagination to page %d of %s", page, path)
            await asyncio.sleep(self._pagination.page_delay_seconds)

    async def paginate(self, path: str, params: dict[str, Any] | None = None) -> list[Any]:
        """Collect every page of a list endpoint into one flat list."""
        results: list[Any] = []
        async for items in self.iter_pages(path, params):
            results.extend(items)
        return results

    # ------------------------------------------------------------------
    # Authenticated user
    # ------------------------------------------------------------------

    async def get_user(self) -> dict[str, Any]:
        """Get the authenticated user's profile."""
        return cast("dict[str, Any]", await self._http.get_json("/user"))

    async def list_recent_repos(self, limit: int = 20) -> list[Any]:
        """List the most recently updated repositories (single page)."""
        return cast(
            "list[Any]",
            await self._http.get_json("/user/repos", params={"sort": "updated", "per_page": limit}),
        )

    async def list_pushed_repos(
        self,
        limit: int = 100,
        affiliation: str = "owner,collaborator,organization_member",
    ) -> list[Any]:
        """List the most recently pushed repositories across affiliations (single page)."""
        params = {"sort": "pushed", "per_page": limit, "affiliation": affiliation}
        logger.info("Fetching up to %d recently pushed repositories", limit)
        return cast("list[Any]", await self._http.get_json("/user/repos", params=params))

    async def list_all_repos(self) -> list[Any]:
        """List every repository visible to the user (paginated)."""
        return await self.paginate("/user/repos")

    async def list_orgs(self) -> list[Any]:
        return cast("list[Any]", await self._http.get_json("/user/orgs"))

    async def list_gists(self) -> list[Any]:
        return cast("list[Any]", await self._http.get_json("/gists"))

    async def list_starred(self) -> list[Any]:
        return cast("list[Any]", await self._http.get_json("/user/starred", params={"per_page": 100}))

    async def list_followers(self) -> list[Any]:
        return cast("list[Any]", await self._http.get_json("/user/followers", params={"per_page": 100}))

    async def list_following(self) -> list[Any]:
        return cast("list[Any]", await self._http.get_json("/user/following", params={"per_page": 100}))

    async def list_user_events(self, login: str) -> list[Any]:
        """List a user's recent public and private events (paginated)."""
        return await self.paginate(f"/users/{login}/events")

    # ------------------------------------------------------------------
    # Repository sub-resources
    # ------------------------------------------------------------------

    async def get_languages(self, full_name: str) -> dict[str, int]:
        return cast("dict[str, int]", await self._http.get_json(f"/repos/{full_name}/languages"))

    async def get_topics(self, full_name: str) -> list[str]:
        data = await self._http.get_json(f"/repos/{full_name}/topics")
        return list(data.get("names") or [])

    async def list_branches(self, full_name: str) -> list[Any]:
        return cast(
            "list[Any]",
            await self._http.get_json(f"/repos/{full_name}/branches", params={"per_page": 100}),
        )

    async def list_contributors(self, full_name: str) -> list[Any]:
        return cast(
            "list[Any]",
            await self._http.get_json(f"/repos/{full_name}/contributors", params={"per_page": 100}),
        )

    async def list_pulls(self, full_name: str, state: str = "all", per_page: int = 50) -> list[Any]:
        return cast(
            "list[Any]",
            await self._http.get_json(
                f"/repos/{full_name}/pulls", params={"state": state, "per_page": per_page}
            ),
        )

    async def list_commits(self, full_name: str, per_page: int = 100) -> list[Any]:
        """List the most recent commits on the default branch (single page)."""
        return cast(
            "list[Any]",
            await self._http.get_json(f"/repos/{full_name}/commits", params={"per_page": per_page}),
        )

    async def get_commit(self, full_name: str, sha: str) -> dict[str, Any]:
        """Get one commit including its ``stats`` and ``files``."""
        return cast("dict[str, Any]", await self._http.get_json(f"/repos/{full_name}/commits/{sha}"))

    async def list_issues(self, full_name: str, state: str = "all", per_page: int = 100) -> list[Any]:
        """List issues. GitHub includes pull requests in this endpoint."""
        return cast(
            "list[Any]",
            await self._http.get_json(
                f"/repos/{full_name}/issues", params={"state": state, "per_page": per_page}
            ),
        )

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    async def get_copilot_billing(self, org: str) -> dict[str, Any]:
        """Get an organization's Copilot seat billing summary."""
        return cast("dict[str, Any]", await self._http.get_json(f"/orgs/{org}/copilot/billing"))


async def list_paginated(rest: RestClient, resource_path: str) -> list[Any]:
    """Walk every page of ``resource_path`` and return the flattened items.

    Args:
        rest: REST client bound to the caller's credential.
        resource_path: List endpoint path, e.g. ``/user/repos``.

    Returns:
        All items in API-returned order.
    """
    return await rest.paginate(resource_path)
