"""Aggregation pipeline over the GitHub REST API."""

from copilot_metrics.collect.activity import (
    estimate_time_saved,
    get_activity_metrics,
    is_authored_by,
)
from copilot_metrics.collect.batch import get_repository_details
from copilot_metrics.collect.details import fetch_repo_details
from copilot_metrics.collect.full import collect_full_data
from copilot_metrics.collect.orgs import get_organization_usage

__all__ = [
    "collect_full_data",
    "estimate_time_saved",
    "fetch_repo_details",
    "get_activity_metrics",
    "get_organization_usage",
    "get_repository_details",
    "is_authored_by",
]
