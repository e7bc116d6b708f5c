"""Tests for commit activity metrics."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import respx

from copilot_metrics.collect.activity import (
    estimate_time_saved,
    format_hours,
    get_activity_metrics,
    is_authored_by,
    round_half_up,
)
from copilot_metrics.config import ActivityConfig
from copilot_metrics.github.auth import Identity
from copilot_metrics.github.http import GitHubHTTPError, NotFoundError, UnauthorizedError
from copilot_metrics.github.rest import RestClient
from copilot_metrics.models import ActivityMetrics

from conftest import API, make_commit, make_repo

IDENTITY = Identity(login="smith", email="smith@example.com")


def _fake_rest(
    repos: list[dict[str, Any]],
    commits: dict[str, Any],
    additions: dict[str, int] | None = None,
) -> MagicMock:
    """Rest client double.

    ``commits`` maps full_name to a commit list or an exception to raise;
    ``additions`` maps sha to the added-line count of that commit.
    """
    additions = additions or {}
    rest = MagicMock()
    rest.list_pushed_repos = AsyncMock(return_value=repos)

    async def list_commits(full_name: str, per_page: int = 100) -> Any:
        result = commits.get(full_name, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def get_commit(full_name: str, sha: str) -> dict[str, Any]:
        if sha not in additions:
            raise NotFoundError("No commit found", 404)
        return {"sha": sha, "stats": {"additions": additions[sha], "deletions": 1}}

    rest.list_commits = AsyncMock(side_effect=list_commits)
    rest.get_commit = AsyncMock(side_effect=get_commit)
    return rest


class TestHeuristic:
    """Tests for the time-saved arithmetic."""

    def test_thousand_lines(self) -> None:
        """Test 1000 lines -> 82.5 -> 83 minutes -> "1.4" hours."""
        minutes = estimate_time_saved(1000)
        assert minutes == 83
        assert format_hours(minutes) == "1.4"

    def test_zero_lines(self) -> None:
        assert estimate_time_saved(0) == 0
        assert format_hours(0) == "0.0"

    @pytest.mark.parametrize(("value", "expected"), [(82.5, 83), (82.49, 82), (0.5, 1), (2.0, 2)])
    def test_round_half_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


class TestIsAuthoredBy:
    """Tests for commit attribution tiers."""

    def test_login_match(self) -> None:
        assert is_authored_by(make_commit("a", login="smith"), IDENTITY)

    def test_author_email_match(self) -> None:
        assert is_authored_by(make_commit("a", email="smith@example.com"), IDENTITY)

    def test_committer_email_match(self) -> None:
        commit = make_commit("a", committer_email="smith@example.com")
        assert is_authored_by(commit, IDENTITY)

    def test_name_substring_case_insensitive(self) -> None:
        """Test login "smith" matches author name "mark-SMITH"."""
        assert is_authored_by(make_commit("a", name="mark-SMITH"), IDENTITY)

    def test_no_match(self) -> None:
        commit = make_commit("a", login="someone", email="x@example.com", name="Jane Doe")
        assert not is_authored_by(commit, IDENTITY)

    def test_missing_email_never_matches_email_tiers(self) -> None:
        """Test a private (None) email does not match commits with no email."""
        commit = {"sha": "a", "author": None, "commit": {"author": {}, "committer": {}}}
        assert not is_authored_by(commit, Identity(login="smith", email=None))

    def test_missing_login(self) -> None:
        commit = make_commit("a", name="anyone")
        assert not is_authored_by(commit, Identity(login=None, email=None))

    def test_sparse_commit(self) -> None:
        assert not is_authored_by({"sha": "a"}, IDENTITY)


class TestGetActivityMetrics:
    """Tests for get_activity_metrics."""

    @pytest.mark.asyncio
    async def test_aggregates_matched_commits(self) -> None:
        repos = [
            make_repo("alpha", pushed_at="2024-06-03T00:00:00Z"),
            make_repo("beta", pushed_at="2024-06-02T00:00:00Z", language="Go"),
            make_repo("gamma", pushed_at="2024-06-01T00:00:00Z"),
        ]
        rest = _fake_rest(
            repos,
            commits={
                "octocat/alpha": [
                    make_commit("a1", email="smith@example.com"),
                    make_commit("a2", name="mark-SMITH"),
                    make_commit("a3", login="other", name="Other"),
                ],
                "octocat/beta": GitHubHTTPError("Git Repository is empty.", 409),
                "octocat/gamma": [make_commit("g1", name="Nobody")],
            },
            additions={"a1": 600, "a2": 400, "a3": 5000},
        )

        metrics = await get_activity_metrics(rest, IDENTITY, ActivityConfig())

        assert metrics.total_commits == 2
        assert metrics.estimated_lines_added == 1000
        assert metrics.time_saved_minutes == 83
        assert metrics.time_saved_hours == "1.4"
        assert metrics.push_events == 1
        assert metrics.last_activity == "2024-06-03T00:00:00Z"
        assert [r.name for r in metrics.recent_repos] == ["alpha", "beta", "gamma"]
        assert metrics.recent_repos[1].language == "Go"
        assert metrics.recent_repos[1].updated == "2024-06-02T00:00:00Z"

    @pytest.mark.asyncio
    async def test_failed_commit_detail_still_counts(self) -> None:
        """Test a commit whose detail fetch fails counts as a commit with no lines."""
        rest = _fake_rest(
            [make_repo("alpha")],
            commits={"octocat/alpha": [make_commit("a1", login="smith"), make_commit("a2", login="smith")]},
            additions={"a1": 10},
        )

        metrics = await get_activity_metrics(rest, IDENTITY)

        assert metrics.total_commits == 2
        assert metrics.estimated_lines_added == 10

    @pytest.mark.asyncio
    async def test_commit_detail_cap(self) -> None:
        commits = [make_commit(f"s{i}", login="smith") for i in range(40)]
        rest = _fake_rest(
            [make_repo("alpha")],
            commits={"octocat/alpha": commits},
            additions={f"s{i}": 1 for i in range(40)},
        )

        metrics = await get_activity_metrics(rest, IDENTITY, ActivityConfig(commit_detail_cap=30))

        assert metrics.total_commits == 40
        assert metrics.estimated_lines_added == 30
        assert rest.get_commit.await_count == 30

    @pytest.mark.asyncio
    async def test_recent_repos_limited(self) -> None:
        repos = [make_repo(f"r{i}") for i in range(15)]
        rest = _fake_rest(repos, commits={})

        metrics = await get_activity_metrics(rest, IDENTITY)

        assert len(metrics.recent_repos) == 10
        assert metrics.total_commits == 0
        assert metrics.push_events == 0

    @pytest.mark.asyncio
    async def test_no_repositories(self) -> None:
        rest = _fake_rest([], commits={})

        metrics = await get_activity_metrics(rest, IDENTITY)

        assert metrics.total_commits == 0
        assert metrics.time_saved_hours == "0.0"
        assert metrics.recent_repos == []
        assert metrics.last_activity is None

    @pytest.mark.asyncio
    async def test_non_list_commit_payload_skipped(self) -> None:
        rest = _fake_rest(
            [make_repo("alpha"), make_repo("beta")],
            commits={
                "octocat/alpha": {"message": "This repository is empty."},
                "octocat/beta": [make_commit("b1", login="smith")],
            },
            additions={"b1": 3},
        )

        metrics = await get_activity_metrics(rest, IDENTITY)

        assert metrics.total_commits == 1
        assert metrics.push_events == 1

    @pytest.mark.asyncio
    async def test_malformed_items_are_skipped(self) -> None:
        """Test items missing full_name or sha are skipped instead of raising."""
        shaless = make_commit("unused", login="smith")
        del shaless["sha"]
        rest = _fake_rest(
            [{"name": "broken"}, "not-a-repo", make_repo("alpha")],  # type: ignore[list-item]
            commits={"octocat/alpha": [shaless, make_commit("a1", login="smith")]},
            additions={"a1": 7},
        )

        metrics = await get_activity_metrics(rest, IDENTITY)

        assert metrics.total_commits == 2
        assert metrics.estimated_lines_added == 7
        assert metrics.push_events == 1
        assert [r.name for r in metrics.recent_repos] == ["broken", "alpha"]
        rest.list_commits.assert_awaited_once()
        rest.get_commit.assert_awaited_once_with("octocat/alpha", "a1")

    @pytest.mark.asyncio
    async def test_non_object_stats_ignored(self) -> None:
        rest = _fake_rest(
            [make_repo("alpha")],
            commits={"octocat/alpha": [make_commit("a1", login="smith")]},
        )
        rest.get_commit = AsyncMock(return_value={"sha": "a1", "stats": ["unexpected"]})

        metrics = await get_activity_metrics(rest, IDENTITY)

        assert metrics.total_commits == 1
        assert metrics.estimated_lines_added == 0

    @pytest.mark.asyncio
    async def test_repo_list_failure_propagates(self) -> None:
        rest = MagicMock()
        rest.list_pushed_repos = AsyncMock(side_effect=UnauthorizedError("Bad credentials", 401))

        with pytest.raises(UnauthorizedError):
            await get_activity_metrics(rest, IDENTITY)

    def test_serialized_field_names(self) -> None:
        dumped = ActivityMetrics().model_dump(by_alias=True)
        assert set(dumped) == {
            "totalCommits",
            "estimatedLinesAdded",
            "timeSavedMinutes",
            "timeSavedHours",
            "pushEvents",
            "recentRepos",
            "lastActivity",
        }


class TestActivityOverHTTP:
    """End-to-end over mocked GitHub endpoints."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_requests(self, rest: RestClient) -> None:
        repos_route = respx.get(f"{API}/user/repos").mock(
            return_value=httpx.Response(200, json=[make_repo("alpha")])
        )
        commits_route = respx.get(f"{API}/repos/octocat/alpha/commits").mock(
            return_value=httpx.Response(200, json=[make_commit("c1", login="octocat")])
        )
        respx.get(f"{API}/repos/octocat/alpha/commits/c1").mock(
            return_value=httpx.Response(200, json={"sha": "c1", "stats": {"additions": 1000}})
        )

        metrics = await get_activity_metrics(rest, Identity(login="octocat"))

        assert metrics.total_commits == 1
        assert metrics.time_saved_minutes == 83
        assert repos_route.calls.last.request.url.params["sort"] == "pushed"
        assert commits_route.calls.last.request.url.params["per_page"] == "100"
