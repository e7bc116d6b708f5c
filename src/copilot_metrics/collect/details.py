"""Per-repository detail collection.

Fans out to seven repository sub-resources and merges them into one
``RepositoryDetail``. Each sub-fetch is guarded on its own: a failure yields
that collection's empty default and a log entry, never a failed record.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from copilot_metrics.models import (
    Branch,
    CommitSummary,
    Contributor,
    IssueSummary,
    PullSummary,
    RepositoryDetail,
    RepositorySummary,
)

if TYPE_CHECKING:
    from copilot_metrics.github.rest import RestClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _best_effort(
    fetch: Callable[[], Awaitable[T]],
    default: Callable[[], T],
    full_name: str,
    resource: str,
) -> T:
    """Run one sub-fetch, returning ``default()`` if it fails for any reason."""
    try:
        return await fetch()
    except Exception as e:
        logger.warning("Could not fetch %s for %s: %s", resource, full_name, e)
        return default()


def _login(obj: Any) -> str | None:
    if isinstance(obj, dict):
        return obj.get("login")
    return None


async def _fetch_branches(rest: RestClient, full_name: str) -> list[Branch]:
    items = await rest.list_branches(full_name)
    return [Branch(name=b["name"], protected=bool(b.get("protected"))) for b in items]


async def _fetch_contributors(rest: RestClient, full_name: str) -> list[Contributor]:
    items = await rest.list_contributors(full_name)
    return [
        Contributor(login=c.get("login"), contributions=int(c.get("contributions") or 0))
        for c in items
    ]


async def _fetch_pulls(rest: RestClient, full_name: str) -> list[PullSummary]:
    items = await rest.list_pulls(full_name, state="all", per_page=50)
    return [
        PullSummary(
            number=p["number"],
            state=p["state"],
            merged_at=p.get("merged_at"),
            author=_login(p.get("user")),
        )
        for p in items
    ]


async def _fetch_commits(rest: RestClient, full_name: str) -> list[CommitSummary]:
    items = await rest.list_commits(full_name, per_page=100)
    return [
        CommitSummary(sha=c["sha"], author=_login(c.get("author")), commit=c.get("commit") or {})
        for c in items
    ]


async def _fetch_issues(rest: RestClient, full_name: str) -> list[IssueSummary]:
    items = await rest.list_issues(full_name, state="all", per_page=100)
    # The issues endpoint also returns pull requests, marked by "pull_request"
    return [
        IssueSummary(
            number=i["number"],
            state=i["state"],
            title=i.get("title") or "",
            author=_login(i.get("user")),
        )
        for i in items
        if not i.get("pull_request")
    ]


async def fetch_repo_details(repo: RepositorySummary, rest: RestClient) -> RepositoryDetail:
    """Collect every sub-resource of one repository.

    Languages and topics are fetched concurrently; branches, contributors,
    pulls, commits and issues follow one after another. Any of the seven may
    fail without affecting the others.

    Args:
        repo: Repository to enrich.
        rest: REST client bound to the caller's credential.

    Returns:
        Fully shaped detail record; failed sub-fetches are empty collections.
    """
    full_name = repo.full_name

    languages, topics = await asyncio.gather(
        _best_effort(lambda: rest.get_languages(full_name), dict, full_name, "languages"),
        _best_effort(lambda: rest.get_topics(full_name), list, full_name, "topics"),
    )

    branches = await _best_effort(
        lambda: _fetch_branches(rest, full_name), list, full_name, "branches"
    )
    contributors = await _best_effort(
        lambda: _fetch_contributors(rest, full_name), list, full_name, "contributors"
    )
    pulls = await _best_effort(lambda: _fetch_pulls(rest, full_name), list, full_name, "pulls")
    commits = await _best_effort(
        lambda: _fetch_commits(rest, full_name), list, full_name, "commits"
    )
    issues = await _best_effort(lambda: _fetch_issues(rest, full_name), list, full_name, "issues")

    return RepositoryDetail(
        **repo.model_dump(),
        topics=topics,
        languages=languages if isinstance(languages, dict) else {},
        branches=branches,
        contributors=contributors,
        pulls=pulls,
        commits=commits,
        issues=issues,
    )
