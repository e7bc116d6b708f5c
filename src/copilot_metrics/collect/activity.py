"""Commit activity metrics for the authenticated user.

Walks the user's most recently pushed repositories, keeps the commits
attributable to the user, samples per-commit diff statistics and reduces
everything into the dashboard's activity figures.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from copilot_metrics.config import ActivityConfig
from copilot_metrics.github.http import GitHubHTTPError
from copilot_metrics.models import ActivityMetrics, RecentRepo

if TYPE_CHECKING:
    from copilot_metrics.github.auth import Identity
    from copilot_metrics.github.rest import RestClient

logger = logging.getLogger(__name__)

# Time-saved heuristic. Output compatibility depends on these exact values.
ASSISTANCE_RATE = 0.30  # share of added lines assumed assistant-influenced
MINUTES_PER_LINE = 0.5  # nominal authoring time per line
SPEEDUP_FACTOR = 0.55  # remaining time share after a 45% reduction


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (82.5 -> 83)."""
    return int(math.floor(value + 0.5))


def estimate_time_saved(lines_added: int) -> int:
    """Estimated minutes saved for ``lines_added`` authored lines.

    Args:
        lines_added: Total added lines across sampled commits.

    Returns:
        Whole minutes, rounded half up.
    """
    return round_half_up(lines_added * ASSISTANCE_RATE * MINUTES_PER_LINE * SPEEDUP_FACTOR)


def format_hours(minutes: int) -> str:
    """Minutes as hours with one decimal, e.g. 83 -> "1.4"."""
    return f"{minutes / 60:.1f}"


def is_authored_by(commit: dict[str, Any], identity: Identity) -> bool:
    """Whether a commit list item is attributable to ``identity``.

    Tiers, first match wins:
    1. GitHub author login equals the identity login
    2. Commit author email equals the identity email
    3. Committer email equals the identity email
    4. Identity login is a case-insensitive substring of the commit author name

    The last tier is loose: login "smith" matches author name "mark-SMITH".

    Args:
        commit: Item from ``GET /repos/{owner}/{repo}/commits``.
        identity: Authenticated identity.

    Returns:
        True if any tier matches.
    """
    login = identity.login
    email = identity.email
    git_commit = commit.get("commit") or {}
    git_author = git_commit.get("author") or {}
    git_committer = git_commit.get("committer") or {}

    if login and (commit.get("author") or {}).get("login") == login:
        return True
    if email and git_author.get("email") == email:
        return True
    if email and git_committer.get("email") == email:
        return True

    author_name = git_author.get("name")
    return bool(login and author_name and login.lower() in author_name.lower())


@dataclass
class RepoActivity:
    """Per-repository tally before reduction."""

    full_name: str
    commits: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    details_failed: int = 0


async def collect_repo_activity(
    rest: RestClient,
    full_name: str,
    identity: Identity,
    config: ActivityConfig,
) -> RepoActivity | None:
    """Tally the identity's commits and sampled line counts for one repository.

    Args:
        rest: REST client bound to the caller's credential.
        full_name: Repository ``owner/name``.
        identity: Authenticated identity.
        config: Activity collection limits.

    Returns:
        The tally, or None if the commit list could not be fetched.
    """
    try:
        commits = await rest.list_commits(full_name, per_page=config.commits_per_repo)
    except GitHubHTTPError as e:
        logger.info("Skipping %s: %s", full_name, e)
        return None

    if not isinstance(commits, list):
        logger.info("Skipping %s: unexpected commit list payload", full_name)
        return None

    mine = [c for c in commits if isinstance(c, dict) and is_authored_by(c, identity)]
    activity = RepoActivity(full_name=full_name, commits=len(mine))
    if not mine:
        return activity

    logger.debug("%s: found %d commits by %s", full_name, len(mine), identity.login)

    # Detail fetches are capped to bound API volume; the commit count is not
    for commit in mine[: config.commit_detail_cap]:
        sha = commit.get("sha")
        if not sha:
            activity.details_failed += 1
            continue
        try:
            detail = await rest.get_commit(full_name, sha)
        except GitHubHTTPError as e:
            activity.details_failed += 1
            logger.debug("Error fetching commit %s@%s: %s", full_name, sha, e)
            continue
        stats = detail.get("stats") if isinstance(detail, dict) else None
        if not isinstance(stats, dict):
            stats = {}
        activity.lines_added += int(stats.get("additions") or 0)
        activity.lines_deleted += int(stats.get("deletions") or 0)

    return activity


async def get_activity_metrics(
    rest: RestClient,
    identity: Identity,
    config: ActivityConfig | None = None,
) -> ActivityMetrics:
    """Compute activity metrics for the authenticated user.

    Repositories whose commit list fails are skipped; commit details that fail
    are left out of the line tally but still count as commits. Failure to list
    repositories propagates.

    Args:
        rest: REST client bound to the caller's credential.
        identity: Login and email used to attribute commits.
        config: Activity collection limits. Defaults are used if None.

    Returns:
        Aggregated activity metrics.

    Raises:
        GitHubHTTPError: If the repository list cannot be fetched.
    """
    config = config or ActivityConfig()
    payload = await rest.list_pushed_repos(limit=config.repo_limit)
    repos = [r for r in payload if isinstance(r, dict)] if isinstance(payload, list) else []

    logger.info("Found %d repositories for user %s", len(repos), identity.login)

    total_commits = 0
    lines_added = 0
    push_events = 0

    for repo in repos:
        full_name = repo.get("full_name")
        if not full_name:
            logger.info("Skipping repository without full_name: %s", repo.get("name"))
            continue
        activity = await collect_repo_activity(rest, full_name, identity, config)
        if activity is None or activity.commits == 0:
            continue
        total_commits += activity.commits
        lines_added += activity.lines_added
        # A repository with any of the user's commits counts as one push event
        push_events += 1

    logger.info("Total commits found: %d, total lines added: %d", total_commits, lines_added)

    minutes = estimate_time_saved(lines_added)

    return ActivityMetrics(
        total_commits=total_commits,
        estimated_lines_added=lines_added,
        time_saved_minutes=minutes,
        time_saved_hours=format_hours(minutes),
        push_events=push_events,
        recent_repos=[
            RecentRepo(name=r.get("name") or "", language=r.get("language"), updated=r.get("pushed_at"))
            for r in repos[: config.recent_repos]
        ],
        last_activity=repos[0].get("pushed_at") if repos else None,
    )
