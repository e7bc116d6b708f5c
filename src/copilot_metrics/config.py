"""Configuration loading and validation."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator


class OAuthConfig(BaseModel):
    """GitHub OAuth application configuration."""

    client_id_env: str = "GITHUB_CLIENT_ID"
    client_secret_env: str = "GITHUB_CLIENT_SECRET"
    callback_url: str = Field(
        default_factory=lambda: os.environ.get(
            "CALLBACK_URL", "http://localhost:3000/auth/callback"
        )
    )
    scopes: list[str] = Field(
        default_factory=lambda: ["user:email", "read:user", "read:org", "repo"]
    )

    @property
    def client_id(self) -> str | None:
        """OAuth client id read from the configured environment variable."""
        return os.environ.get(self.client_id_env)

    @property
    def client_secret(self) -> str | None:
        """OAuth client secret read from the configured environment variable."""
        return os.environ.get(self.client_secret_env)

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class GitHubConfig(BaseModel):
    """GitHub endpoints and client settings."""

    api_url: str = "https://api.github.com"
    oauth_url: str = "https://github.com"
    timeout_seconds: float = Field(default=30.0, gt=0)
    oauth: OAuthConfig = Field(default_factory=OAuthConfig)

    @field_validator("api_url", "oauth_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended directly."""
        return v.rstrip("/")


class PaginationConfig(BaseModel):
    """Page-number pagination settings."""

    page_size: int = Field(default=100, ge=1, le=100)
    page_delay_seconds: float = Field(default=0.1, ge=0)
    max_pages: int = Field(
        default=1000, ge=1, description="Safety bound on pages walked per resource"
    )


class BatchingConfig(BaseModel):
    """Repository detail batching settings."""

    batch_size: int = Field(default=5, ge=1)
    batch_delay_seconds: float = Field(default=0.2, ge=0)


class ActivityConfig(BaseModel):
    """Activity metrics collection settings."""

    repo_limit: int = Field(default=100, ge=1, le=100)
    commits_per_repo: int = Field(default=100, ge=1, le=100)
    commit_detail_cap: int = Field(
        default=30, ge=0, description="Commit detail fetches per repository"
    )
    recent_repos: int = Field(default=10, ge=0)


class BurstConfig(BaseModel):
    """Burst control configuration."""

    capacity: int = Field(default=30, ge=1, description="Maximum burst capacity")
    sustained_rate: float = Field(default=10.0, ge=0.1, description="Sustained tokens per second")


class RateLimitConfig(BaseModel):
    """Rate limiting configuration."""

    enabled: bool = True
    max_concurrency: int = Field(default=10, ge=1, le=50)
    max_sleep_seconds: float = Field(
        default=60.0, ge=0, description="Longest wait for an exhausted quota to reset"
    )
    burst: BurstConfig = Field(default_factory=BurstConfig)


class ServerConfig(BaseModel):
    """HTTP server and session configuration."""

    host: str = "127.0.0.1"
    port: int = Field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    session_secret_env: str = "SESSION_SECRET"
    session_max_age_seconds: int = Field(default=24 * 60 * 60, ge=60)
    session_https_only: bool = Field(
        default=False, description="Send the session cookie over HTTPS only"
    )
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def session_secret(self) -> str:
        """Session signing secret from the environment, with a development fallback."""
        return os.environ.get(self.session_secret_env) or "copilot-metrics-secret"


class Config(BaseModel):
    """Root configuration model."""

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    batching: BatchingConfig = Field(default_factory=BatchingConfig)
    activity: ActivityConfig = Field(default_factory=ActivityConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def load_config(path: Path | None = None) -> Config:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to the YAML configuration file. If None, defaults are used.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValidationError: If the config is invalid.
    """
    if path is None:
        return Config()

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        raw_config: dict[str, Any] | None = yaml.safe_load(f)

    return Config.model_validate(raw_config or {})
