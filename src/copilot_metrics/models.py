"""Response models for aggregated dashboard data.

Every collection field defaults to empty so that a record built under
partial upstream failure keeps the same shape as a complete one.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RepositorySummary(BaseModel):
    """Repository fields taken verbatim from a repository list page."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    language: str | None = None
    pushed_at: str | None = None
    private: bool = False
    fork: bool = False
    html_url: str | None = None
    description: str | None = None

    @classmethod
    def from_api(cls, repo: dict[str, Any]) -> "RepositorySummary":
        """Build a summary from a ``/user/repos`` item, ignoring extra keys."""
        return cls(
            name=repo.get("name") or "",
            full_name=repo.get("full_name") or "",
            language=repo.get("language"),
            pushed_at=repo.get("pushed_at"),
            private=bool(repo.get("private")),
            fork=bool(repo.get("fork")),
            html_url=repo.get("html_url"),
            description=repo.get("description"),
        )


class Branch(BaseModel):
    name: str
    protected: bool = False


class Contributor(BaseModel):
    login: str | None = None
    contributions: int = 0


class PullSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: int
    state: str
    merged_at: str | None = None
    author: str | None = Field(default=None, alias="user")


class CommitSummary(BaseModel):
    sha: str
    author: str | None = None
    commit: dict[str, Any] = Field(default_factory=dict)


class IssueSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: int
    state: str
    title: str = ""
    author: str | None = Field(default=None, alias="user")


class RepositoryDetail(RepositorySummary):
    """A repository enriched with its sub-resources."""

    topics: list[str] = Field(default_factory=list)
    languages: dict[str, int] = Field(default_factory=dict)
    branches: list[Branch] = Field(default_factory=list)
    contributors: list[Contributor] = Field(default_factory=list)
    pulls: list[PullSummary] = Field(default_factory=list)
    commits: list[CommitSummary] = Field(default_factory=list)
    issues: list[IssueSummary] = Field(default_factory=list)

    @classmethod
    def empty(cls, repo: RepositorySummary) -> "RepositoryDetail":
        """Detail record with every sub-collection empty."""
        return cls(**repo.model_dump())


class RecentRepo(BaseModel):
    name: str
    language: str | None = None
    updated: str | None = None


class ActivityMetrics(BaseModel):
    """Commit-derived activity metrics for the authenticated user."""

    model_config = ConfigDict(populate_by_name=True)

    total_commits: int = Field(default=0, ge=0, alias="totalCommits")
    estimated_lines_added: int = Field(default=0, ge=0, alias="estimatedLinesAdded")
    time_saved_minutes: int = Field(default=0, ge=0, alias="timeSavedMinutes")
    time_saved_hours: str = Field(default="0.0", alias="timeSavedHours")
    push_events: int = Field(default=0, ge=0, alias="pushEvents")
    recent_repos: list[RecentRepo] = Field(default_factory=list, alias="recentRepos")
    last_activity: str | None = Field(default=None, alias="lastActivity")


class FullData(BaseModel):
    """Everything the dashboard's full view shows, in one document."""

    model_config = ConfigDict(populate_by_name=True)

    user: dict[str, Any] | None = None
    orgs: list[Any] = Field(default_factory=list)
    gists: list[Any] = Field(default_factory=list)
    starred: list[Any] = Field(default_factory=list)
    followers: list[Any] = Field(default_factory=list)
    following: list[Any] = Field(default_factory=list)
    repos: list[Any] = Field(default_factory=list)
    repo_details: list[RepositoryDetail] = Field(
        default_factory=list, alias="repoDetails"
    )
    events: list[Any] = Field(default_factory=list)
