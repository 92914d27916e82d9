"""Mapping helpers from store rows to view-models.

Each ``*_VIEW_OPTIONS`` tuple lists the eager loads its mapper relies on;
queries feeding a mapper must apply the matching options so rendering a
feed never triggers per-row lazy loads.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy.orm import selectinload

from wimdy.store.storage import Commit, Issue, PullRequest, Repository
from wimdy.views import (
    CommitView,
    IssueView,
    PullRequestDetail,
    PullRequestView,
    RepositoryCounts,
    RepositoryDetail,
    RepositoryRef,
    RepositoryView,
    UserSummary,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.orm.strategy_options import _AbstractLoad

    from wimdy.store.storage import User

REPOSITORY_VIEW_OPTIONS: tuple[_AbstractLoad, ...] = (
    selectinload(Repository.owner),
)
COMMIT_VIEW_OPTIONS: tuple[_AbstractLoad, ...] = (
    selectinload(Commit.repository),
    selectinload(Commit.author),
)
ISSUE_VIEW_OPTIONS: tuple[_AbstractLoad, ...] = (
    selectinload(Issue.repository),
    selectinload(Issue.author),
    selectinload(Issue.assignee),
)
PULL_REQUEST_VIEW_OPTIONS: tuple[_AbstractLoad, ...] = (
    selectinload(PullRequest.repository),
    selectinload(PullRequest.author),
    selectinload(PullRequest.merged_by),
)
PULL_REQUEST_DETAIL_OPTIONS: tuple[_AbstractLoad, ...] = (
    *PULL_REQUEST_VIEW_OPTIONS,
    selectinload(PullRequest.commits).selectinload(Commit.repository),
    selectinload(PullRequest.commits).selectinload(Commit.author),
)


def to_user_summary(user: User) -> UserSummary:
    """Convert a user row to its public summary."""
    return UserSummary(id=user.id, name=user.name)


def _optional_user(user: User | None) -> UserSummary | None:
    return None if user is None else to_user_summary(user)


def to_repository_ref(repo: Repository) -> RepositoryRef:
    """Convert a repository row to the reference embedded in child views."""
    return RepositoryRef(
        id=repo.id, slug=repo.slug, name=repo.name, is_private=repo.is_private
    )


def _repository_fields(repo: Repository) -> dict[str, typ.Any]:
    return {
        "id": repo.id,
        "name": repo.name,
        "slug": repo.slug,
        "description": repo.description,
        "owner": to_user_summary(repo.owner),
        "is_private": repo.is_private,
        "is_fork": repo.is_fork,
        "language": repo.language,
        "stars_count": repo.stars_count,
        "forks_count": repo.forks_count,
        "default_branch": repo.default_branch,
        "created_at": repo.created_at,
        "updated_at": repo.updated_at,
    }


def to_repository_view(repo: Repository) -> RepositoryView:
    """Convert a repository row (owner loaded) to its view."""
    return RepositoryView(**_repository_fields(repo))


def to_repository_detail(
    repo: Repository, counts: RepositoryCounts, recent_commits: list[Commit]
) -> RepositoryDetail:
    """Combine a repository row with its counts and newest commits."""
    return RepositoryDetail(
        **_repository_fields(repo),
        issues_count=counts.issues_count,
        pull_requests_count=counts.pull_requests_count,
        open_issues_count=counts.open_issues_count,
        open_pull_requests_count=counts.open_pull_requests_count,
        recent_commits=[to_commit_view(commit) for commit in recent_commits],
    )


def to_commit_view(commit: Commit) -> CommitView:
    """Convert a commit row (repository and author loaded) to its view."""
    return CommitView(
        id=commit.id,
        hash=commit.hash,
        message=commit.message,
        branch=commit.branch,
        author=to_user_summary(commit.author),
        author_name=commit.author_name,
        author_email=commit.author_email,
        files_changed=commit.files_changed,
        additions=commit.additions,
        deletions=commit.deletions,
        committed_at=commit.committed_at,
        repository=to_repository_ref(commit.repository),
    )


def to_issue_view(issue: Issue) -> IssueView:
    """Convert an issue row to its view; labels are listed alphabetically."""
    return IssueView(
        id=issue.id,
        repository=to_repository_ref(issue.repository),
        title=issue.title,
        description=issue.description,
        author=to_user_summary(issue.author),
        assignee=_optional_user(issue.assignee),
        status=issue.status,
        priority=issue.priority,
        labels=sorted(issue.labels),
        closed_at=issue.closed_at,
        created_at=issue.created_at,
        updated_at=issue.updated_at,
    )


def _pull_request_fields(pull_request: PullRequest) -> dict[str, typ.Any]:
    return {
        "id": pull_request.id,
        "repository": to_repository_ref(pull_request.repository),
        "title": pull_request.title,
        "description": pull_request.description,
        "author": to_user_summary(pull_request.author),
        "source_branch": pull_request.source_branch,
        "target_branch": pull_request.target_branch,
        "status": pull_request.status,
        "is_draft": pull_request.is_draft,
        "commits_count": pull_request.commits_count,
        "files_changed": pull_request.files_changed,
        "merged_at": pull_request.merged_at,
        "merged_by": _optional_user(pull_request.merged_by),
        "created_at": pull_request.created_at,
        "updated_at": pull_request.updated_at,
    }


def to_pull_request_view(pull_request: PullRequest) -> PullRequestView:
    """Convert a pull request row to its list view."""
    return PullRequestView(**_pull_request_fields(pull_request))


def to_pull_request_detail(pull_request: PullRequest) -> PullRequestDetail:
    """Convert a pull request row (commits loaded) to its detail view."""
    return PullRequestDetail(
        **_pull_request_fields(pull_request),
        commits=[to_commit_view(commit) for commit in pull_request.commits],
    )
