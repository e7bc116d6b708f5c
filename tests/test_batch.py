"""Tests for batched repository detail collection."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from copilot_metrics.collect.batch import get_repository_details, partition
from copilot_metrics.config import BatchingConfig
from copilot_metrics.models import RepositoryDetail, RepositorySummary

from conftest import make_repo


def _repos(count: int) -> list[RepositorySummary]:
    return [RepositorySummary.from_api(make_repo(f"repo-{i:02d}")) for i in range(count)]


class TestPartition:
    def test_even_split(self) -> None:
        assert [len(c) for c in partition(_repos(10), 5)] == [5, 5]

    def test_remainder(self) -> None:
        assert [len(c) for c in partition(_repos(12), 5)] == [5, 5, 2]

    def test_empty(self) -> None:
        assert partition([], 5) == []


class TestGetRepositoryDetails:
    """Tests for get_repository_details."""

    @pytest.mark.asyncio
    async def test_keeps_input_order_with_bounded_concurrency(self) -> None:
        """Test 12 repos come back in input order with at most 5 in flight."""
        repos = _repos(12)
        in_flight = 0
        peak = 0

        async def fake_fetch(repo: RepositorySummary, rest: object) -> RepositoryDetail:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            # Later repos in a batch finish first
            await asyncio.sleep(0.001 * (12 - int(repo.name[-2:])))
            in_flight -= 1
            return RepositoryDetail.empty(repo)

        with patch("copilot_metrics.collect.batch.fetch_repo_details", side_effect=fake_fetch):
            details = await get_repository_details(
                AsyncMock(), repos, BatchingConfig(batch_delay_seconds=0)
            )

        assert [d.full_name for d in details] == [r.full_name for r in repos]
        assert peak == 5

    @pytest.mark.asyncio
    async def test_failed_repo_degrades_to_empty_record(self) -> None:
        repos = _repos(3)

        async def fake_fetch(repo: RepositorySummary, rest: object) -> RepositoryDetail:
            if repo.name == "repo-01":
                raise RuntimeError("boom")
            return RepositoryDetail.empty(repo).model_copy(update={"topics": ["ok"]})

        with patch("copilot_metrics.collect.batch.fetch_repo_details", side_effect=fake_fetch):
            details = await get_repository_details(
                AsyncMock(), repos, BatchingConfig(batch_delay_seconds=0)
            )

        assert len(details) == 3
        assert details[0].topics == ["ok"]
        assert details[1] == RepositoryDetail.empty(repos[1])
        assert details[2].topics == ["ok"]

    @pytest.mark.asyncio
    async def test_sleeps_only_between_batches(self) -> None:
        repos = _repos(12)

        async def fake_fetch(repo: RepositorySummary, rest: object) -> RepositoryDetail:
            return RepositoryDetail.empty(repo)

        with (
            patch("copilot_metrics.collect.batch.fetch_repo_details", side_effect=fake_fetch),
            patch("copilot_metrics.collect.batch.asyncio.sleep", new=AsyncMock()) as sleep,
        ):
            await get_repository_details(AsyncMock(), repos, BatchingConfig(batch_delay_seconds=0.2))

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.2)

    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        assert await get_repository_details(AsyncMock(), []) == []
