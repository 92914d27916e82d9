"""Unit-test fixtures for the Wimdy entity services."""

from __future__ import annotations

import datetime as dt
import itertools
import typing as typ

import pytest

from wimdy.commits import CommitService, RecordCommitInput
from wimdy.issues import IssueService
from wimdy.pulls import PullRequestService
from wimdy.repositories import CreateRepositoryInput, RepositoryService

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.policy import Actor
    from wimdy.views import CommitView, RepositoryView

BASE_TIME = dt.datetime(2024, 3, 1, 12, 0, tzinfo=dt.UTC)


class CreateRepoFn(typ.Protocol):
    """Callable fixture for creating repositories through the service."""

    def __call__(
        self, owner: Actor, name: str = "demo", *, is_private: bool = False
    ) -> cabc.Awaitable[RepositoryView]:
        """Create a repository owned by ``owner``."""
        ...


class RecordCommitFn(typ.Protocol):
    """Callable fixture for recording commits through the service."""

    def __call__(
        self,
        owner: Actor,
        slug: str,
        *,
        minutes: int = 0,
        files_changed: int = 1,
        branch: str = "main",
    ) -> cabc.Awaitable[CommitView]:
        """Record a commit ``minutes`` after the base time."""
        ...


@pytest.fixture
def repository_service(
    session_factory: async_sessionmaker[AsyncSession],
) -> RepositoryService:
    """Return a RepositoryService with the default configuration."""
    return RepositoryService(session_factory)


@pytest.fixture
def issue_service(session_factory: async_sessionmaker[AsyncSession]) -> IssueService:
    """Return an IssueService with the default configuration."""
    return IssueService(session_factory)


@pytest.fixture
def pull_request_service(
    session_factory: async_sessionmaker[AsyncSession],
) -> PullRequestService:
    """Return a PullRequestService with the default configuration."""
    return PullRequestService(session_factory)


@pytest.fixture
def commit_service(session_factory: async_sessionmaker[AsyncSession]) -> CommitService:
    """Return a CommitService with the default configuration."""
    return CommitService(session_factory)


@pytest.fixture
def create_repo(repository_service: RepositoryService) -> CreateRepoFn:
    """Return a factory for creating repositories."""

    async def _create(
        owner: Actor, name: str = "demo", *, is_private: bool = False
    ) -> RepositoryView:
        return await repository_service.create_repository(
            owner, CreateRepositoryInput(name=name, is_private=is_private)
        )

    return _create


@pytest.fixture
def record_commit(commit_service: CommitService) -> RecordCommitFn:
    """Return a factory recording commits with unique hashes."""
    counter = itertools.count(1)

    async def _record(
        owner: Actor,
        slug: str,
        *,
        minutes: int = 0,
        files_changed: int = 1,
        branch: str = "main",
    ) -> CommitView:
        return await commit_service.record_commit(
            owner,
            slug,
            RecordCommitInput(
                hash=f"{next(counter):040x}",
                message="Update handling",
                branch=branch,
                files_changed=files_changed,
                committed_at=BASE_TIME + dt.timedelta(minutes=minutes),
            ),
        )

    return _record
