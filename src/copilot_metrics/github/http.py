"""GitHub HTTP client.

Async HTTP client for the GitHub REST API that performs exactly one request
per call and normalizes failures into typed exceptions carrying the upstream
status code. Retry policy belongs to callers; this client never retries.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from copilot_metrics import __version__
from copilot_metrics.github.auth import Credential
from copilot_metrics.github.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitInfo(BaseModel):
    """GitHub API rate limit information from response headers."""

    limit: int
    remaining: int
    reset: datetime
    used: int
    resource: str = "core"

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> Optional["RateLimitInfo"]:
        """Extract rate limit info from response headers.

        Args:
            headers: HTTP response headers.

        Returns:
            RateLimitInfo if headers present, None otherwise.
        """
        if "x-ratelimit-limit" not in headers:
            return None

        reset_timestamp = int(headers.get("x-ratelimit-reset", "0"))
        reset_dt = datetime.fromtimestamp(reset_timestamp, tz=UTC)

        return cls(
            limit=int(headers.get("x-ratelimit-limit", "0")),
            remaining=int(headers.get("x-ratelimit-remaining", "0")),
            reset=reset_dt,
            used=int(headers.get("x-ratelimit-used", "0")),
            resource=headers.get("x-ratelimit-resource", "core"),
        )


@dataclass
class GitHubResponse:
    """GitHub API response with parsed data and metadata."""

    status_code: int
    data: Any
    headers: httpx.Headers
    rate_limit: RateLimitInfo | None = None
    url: str = ""

    @property
    def is_success(self) -> bool:
        """Check if response was successful (2xx status code)."""
        return 200 <= self.status_code < 300

    @property
    def is_rate_limited(self) -> bool:
        """Check if response indicates rate limiting (429 or 403 with rate limit)."""
        return self.status_code == 429 or (
            self.status_code == 403
            and self.rate_limit is not None
            and self.rate_limit.remaining == 0
        )

    @property
    def message(self) -> str:
        """Upstream error message, if the body carries one."""
        if isinstance(self.data, dict) and self.data.get("message"):
            return str(self.data["message"])
        return f"HTTP {self.status_code}"


class GitHubHTTPError(Exception):
    """Base exception for GitHub HTTP errors.

    ``status_code`` is None when no response was received (timeout or
    network failure).
    """

    def __init__(self, message: str, status_code: int | None = None, url: str = "") -> None:
        self.message = message
        self.status_code = status_code
        self.url = url
        super().__init__(message if status_code is None else f"{status_code}: {message}")


class InsufficientAuthorizationError(GitHubHTTPError):
    """Raised for 401/403 responses."""


class UnauthorizedError(InsufficientAuthorizationError):
    """Raised when the token is rejected (401)."""


class ForbiddenError(InsufficientAuthorizationError):
    """Raised when the token lacks access to a resource (403)."""


class NotFoundError(GitHubHTTPError):
    """Raised when a resource does not exist or is hidden (404)."""


class RateLimitExceeded(GitHubHTTPError):
    """Raised when the upstream quota is exhausted (429, or 403 with no quota left)."""

    def __init__(self, message: str, status_code: int, url: str = "", reset_at: datetime | None = None) -> None:
        self.reset_at = reset_at
        super().__init__(message, status_code, url)


class UpstreamFailureError(GitHubHTTPError):
    """Raised by operations that collapse unexpected upstream failures into one type."""


def raise_for_status(response: GitHubResponse) -> None:
    """Raise the typed exception matching a non-2xx response.

    Args:
        response: Response to inspect.

    Raises:
        GitHubHTTPError: Or the subclass matching the status code.
    """
    if response.is_success:
        return

    status = response.status_code
    message = response.message

    if response.is_rate_limited:
        reset_at = response.rate_limit.reset if response.rate_limit else None
        raise RateLimitExceeded(message, status, response.url, reset_at=reset_at)
    if status == 401:
        raise UnauthorizedError(message, status, response.url)
    if status == 403:
        raise ForbiddenError(message, status, response.url)
    if status == 404:
        raise NotFoundError(message, status, response.url)
    raise GitHubHTTPError(message, status, response.url)


class GitHubClient:
    """Async HTTP client for GitHub API.

    Features:
    - Token authentication from a session credential
    - Optional shared rate limiter wrapped around every request
    - Typed exceptions for non-2xx responses
    - No internal retries
    """

    BASE_URL = "https://api.github.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        credential: Credential | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = BASE_URL,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Initialize GitHub HTTP client.

        Args:
            credential: Credential to authenticate with. None sends anonymous
                requests (used for the OAuth token exchange).
            timeout: Request timeout in seconds.
            base_url: Base URL for relative request paths.
            rate_limiter: Limiter acquired around every request, if any.
        """
        self._credential = credential
        self._timeout = timeout
        self._base_url = base_url.rstrip("/")
        self._rate_limiter = rate_limiter

        self._client: httpx.AsyncClient | None = None
        self.requests_made = 0

    @property
    def credential(self) -> Credential | None:
        return self._credential

    @property
    def rate_limiter(self) -> RateLimiter | None:
        return self._rate_limiter

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": f"copilot-metrics/{__version__}",
        }
        if self._credential is not None:
            headers.update(self._credential.get_authorization_header())
        return headers

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._get_headers(),
                follow_redirects=True,
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> GitHubResponse:
        """Make one HTTP request to GitHub.

        Non-2xx responses are returned, not raised; use ``raise_for_status``
        or the ``*_json`` helpers for typed failures.

        Args:
            method: HTTP method (GET, POST, etc.).
            path: API path (e.g., "/user") or absolute URL.
            **kwargs: Additional arguments passed to httpx (params, json, etc.).

        Returns:
            GitHubResponse with parsed data and metadata.

        Raises:
            GitHubHTTPError: On timeout or network failure.
        """
        client = await self._ensure_client()

        if self._rate_limiter:
            await self._rate_limiter.acquire()

        logger.debug("%s %s", method, path)

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Timeout for %s %s", method, path)
            raise GitHubHTTPError(f"Request timeout: {e}", url=path) from e
        except httpx.HTTPError as e:
            logger.warning("Network error for %s %s: %s", method, path, e)
            raise GitHubHTTPError(f"Network error: {e}", url=path) from e
        finally:
            if self._rate_limiter:
                self._rate_limiter.release()

        self.requests_made += 1
        if self._rate_limiter:
            self._rate_limiter.update(response.headers)

        data = None
        if response.content:
            try:
                data = response.json()
            except ValueError as e:
                logger.warning("Failed to parse JSON response from %s: %s", path, e)
                data = response.text

        result = GitHubResponse(
            status_code=response.status_code,
            data=data,
            headers=response.headers,
            rate_limit=RateLimitInfo.from_headers(response.headers),
            url=str(response.url),
        )

        if not result.is_success:
            logger.debug("%s %s returned %d", method, path, result.status_code)

        return result

    async def get(self, path: str, **kwargs: Any) -> GitHubResponse:
        """Make a GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> GitHubResponse:
        """Make a POST request."""
        return await self.request("POST", path, **kwargs)

    async def get_json(self, path: str, **kwargs: Any) -> Any:
        """GET a resource and return its decoded payload.

        Args:
            path: API path.
            **kwargs: Additional arguments (params, headers, etc.).

        Returns:
            Decoded JSON payload (or raw text if the body was not JSON).

        Raises:
            GitHubHTTPError: Or a subclass, for any non-2xx outcome.
        """
        response = await self.get(path, **kwargs)
        raise_for_status(response)
        return response.data

    async def post_json(self, path: str, **kwargs: Any) -> Any:
        """POST to a resource and return its decoded payload."""
        response = await self.post(path, **kwargs)
        raise_for_status(response)
        return response.data

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GitHubClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
