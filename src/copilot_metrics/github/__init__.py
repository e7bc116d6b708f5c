"""GitHub API clients and utilities."""

from copilot_metrics.github.auth import (
    AuthenticationError,
    Credential,
    Identity,
)
from copilot_metrics.github.http import (
    ForbiddenError,
    GitHubClient,
    GitHubHTTPError,
    GitHubResponse,
    InsufficientAuthorizationError,
    NotFoundError,
    RateLimitExceeded,
    RateLimitInfo,
    UnauthorizedError,
    UpstreamFailureError,
    raise_for_status,
)
from copilot_metrics.github.ratelimit import RateLimiter, RateLimitState, TokenBucket
from copilot_metrics.github.rest import RestClient, list_paginated

__all__ = [
    # Auth
    "AuthenticationError",
    "Credential",
    # HTTP Client
    "ForbiddenError",
    "GitHubClient",
    "GitHubHTTPError",
    "GitHubResponse",
    "Identity",
    "InsufficientAuthorizationError",
    "NotFoundError",
    "RateLimitExceeded",
    "RateLimitInfo",
    "RateLimitState",
    # Rate limiting
    "RateLimiter",
    # REST API Client
    "RestClient",
    "TokenBucket",
    "UnauthorizedError",
    "UpstreamFailureError",
    "list_paginated",
    "raise_for_status",
]
