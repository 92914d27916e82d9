"""View-models returned by read operations.

These structures are the only thing the presentation layer receives. They
carry the stored entity fields plus derived aggregates; no business logic
lives downstream of them.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003

import msgspec

from wimdy.lifecycle.states import (  # noqa: TC001
    IssuePriority,
    IssueStatus,
    PullRequestStatus,
)


class UserSummary(msgspec.Struct, kw_only=True, frozen=True):
    """Public identity of a user."""

    id: int
    name: str


class RepositoryRef(msgspec.Struct, kw_only=True, frozen=True):
    """Minimal repository reference embedded in child entity views."""

    id: int
    slug: str
    name: str
    is_private: bool


class RepositoryView(msgspec.Struct, kw_only=True, frozen=True):
    """Repository as listed in indexes and feeds."""

    id: int
    name: str
    slug: str
    description: str | None
    owner: UserSummary
    is_private: bool
    is_fork: bool
    language: str | None
    stars_count: int
    forks_count: int
    default_branch: str
    created_at: dt.datetime
    updated_at: dt.datetime


class RepositoryCounts(msgspec.Struct, kw_only=True, frozen=True):
    """Conditional counts over a repository's issues and pull requests."""

    issues_count: int = 0
    pull_requests_count: int = 0
    open_issues_count: int = 0
    open_pull_requests_count: int = 0


class CommitView(msgspec.Struct, kw_only=True, frozen=True):
    """Recorded commit with its author snapshot."""

    id: int
    hash: str
    message: str
    branch: str
    author: UserSummary
    author_name: str
    author_email: str
    files_changed: int
    additions: int
    deletions: int
    committed_at: dt.datetime
    repository: RepositoryRef


class RepositoryDetail(RepositoryView, kw_only=True, frozen=True):
    """Repository page: fields, counts, and its newest commits."""

    issues_count: int
    pull_requests_count: int
    open_issues_count: int
    open_pull_requests_count: int
    recent_commits: list[CommitView]


class IssueView(msgspec.Struct, kw_only=True, frozen=True):
    """Issue with author and assignee resolved."""

    id: int
    repository: RepositoryRef
    title: str
    description: str | None
    author: UserSummary
    assignee: UserSummary | None
    status: IssueStatus
    priority: IssuePriority
    labels: list[str]
    closed_at: dt.datetime | None
    created_at: dt.datetime
    updated_at: dt.datetime


class PullRequestView(msgspec.Struct, kw_only=True, frozen=True):
    """Pull request with author and merger resolved."""

    id: int
    repository: RepositoryRef
    title: str
    description: str | None
    author: UserSummary
    source_branch: str
    target_branch: str
    status: PullRequestStatus
    is_draft: bool
    commits_count: int
    files_changed: int
    merged_at: dt.datetime | None
    merged_by: UserSummary | None
    created_at: dt.datetime
    updated_at: dt.datetime


class PullRequestDetail(PullRequestView, kw_only=True, frozen=True):
    """Pull request page including its associated commits."""

    commits: list[CommitView]


class DashboardView(msgspec.Struct, kw_only=True, frozen=True):
    """Signed-in user's dashboard feed."""

    repositories: list[RepositoryView]
    recent_commits: list[CommitView]
    pull_requests: list[PullRequestView]
    issues: list[IssueView]


class HomeStats(msgspec.Struct, kw_only=True, frozen=True):
    """Global counters restricted to public repositories."""

    repositories: int
    issues: int
    pull_requests: int
    commits: int


class HomeView(msgspec.Struct, kw_only=True, frozen=True):
    """Public home feed."""

    trending_repositories: list[RepositoryView]
    recent_commits: list[CommitView]
    open_pull_requests: list[PullRequestView]
    recent_issues: list[IssueView]
    stats: HomeStats
