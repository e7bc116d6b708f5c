"""Batched repository detail collection.

Runs detail fetches a fixed number of repositories at a time. All fetches in
a batch run concurrently and the next batch starts only once the current one
has finished, which caps in-flight repositories at the batch size.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from copilot_metrics.collect.details import fetch_repo_details
from copilot_metrics.config import BatchingConfig
from copilot_metrics.models import RepositoryDetail, RepositorySummary

if TYPE_CHECKING:
    from copilot_metrics.github.rest import RestClient

logger = logging.getLogger(__name__)


def partition(items: Sequence[RepositorySummary], size: int) -> list[list[RepositorySummary]]:
    """Split ``items`` into contiguous chunks of at most ``size``."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


async def _fetch_or_empty(repo: RepositorySummary, rest: RestClient) -> RepositoryDetail:
    try:
        return await fetch_repo_details(repo, rest)
    except Exception as e:
        logger.error("Repository details failed for %s: %s", repo.full_name, e)
        return RepositoryDetail.empty(repo)


async def get_repository_details(
    rest: RestClient,
    repos: Sequence[RepositorySummary],
    config: BatchingConfig | None = None,
) -> list[RepositoryDetail]:
    """Fetch detail records for ``repos`` in paced, bounded-concurrency batches.

    Args:
        rest: REST client bound to the caller's credential.
        repos: Repositories in the order results should be returned.
        config: Batch size and inter-batch pause. Defaults are used if None.

    Returns:
        One detail record per input repository, in input order.
    """
    config = config or BatchingConfig()
    batches = partition(repos, config.batch_size)
    results: list[RepositoryDetail] = []

    logger.info(
        "Fetching details for %d repositories in %d batches of %d",
        len(repos),
        len(batches),
        config.batch_size,
    )

    for index, batch in enumerate(batches):
        # gather returns results in argument order, not completion order
        results.extend(await asyncio.gather(*(_fetch_or_empty(r, rest) for r in batch)))

        if index < len(batches) - 1:
            await asyncio.sleep(config.batch_delay_seconds)

    return results
