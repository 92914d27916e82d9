"""Unit tests for the dashboard and home feeds."""

from __future__ import annotations

import typing as typ

import pytest
from sqlalchemy import update

from wimdy.aggregation import (
    DASHBOARD_COMMITS,
    DASHBOARD_REPOSITORIES,
    HOME_REPOSITORIES,
    FeedService,
    repository_counts,
)
from wimdy.issues import CreateIssueInput, IssueService, UpdateIssueInput
from wimdy.lifecycle import IssueStatus
from wimdy.policy import Actor, AuthenticationRequiredError
from wimdy.pulls import CreatePullRequestInput, PullRequestService
from wimdy.store import Repository

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from tests.conftest import People
    from tests.unit.conftest import CreateRepoFn, RecordCommitFn


@pytest.fixture
def feed_service(session_factory: async_sessionmaker[AsyncSession]) -> FeedService:
    """Return a FeedService over the test database."""
    return FeedService(session_factory)


async def _set_stars(
    session_factory: async_sessionmaker[AsyncSession], stars: dict[int, int]
) -> None:
    async with session_factory() as session, session.begin():
        for repo_id, count in stars.items():
            await session.execute(
                update(Repository)
                .where(Repository.id == repo_id)
                .values(stars_count=count)
            )


def _pull_input(title: str) -> CreatePullRequestInput:
    return CreatePullRequestInput(
        title=title, source_branch="feature", target_branch="main"
    )


class TestDashboard:
    """Tests for FeedService.dashboard."""

    @pytest.mark.asyncio
    async def test_anonymous_has_no_dashboard(self, feed_service: FeedService) -> None:
        """The dashboard requires a signed-in actor."""
        with pytest.raises(AuthenticationRequiredError):
            await feed_service.dashboard(Actor.anonymous())

    @pytest.mark.asyncio
    async def test_caps_repositories_and_commits(
        self,
        feed_service: FeedService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """Repositories and commits are capped and newest first."""
        repos = [await create_repo(people.alice, f"repo {n}") for n in range(7)]
        minutes = 0
        for repo in repos[-2:]:
            for _ in range(6):
                minutes += 1
                await record_commit(people.alice, repo.slug, minutes=minutes)

        dashboard = await feed_service.dashboard(people.alice)

        assert len(dashboard.repositories) == DASHBOARD_REPOSITORIES
        assert [repo.slug for repo in dashboard.repositories] == [
            repo.slug for repo in reversed(repos[-DASHBOARD_REPOSITORIES:])
        ], "newest repositories first"
        assert len(dashboard.recent_commits) == DASHBOARD_COMMITS
        times = [commit.committed_at for commit in dashboard.recent_commits]
        assert times == sorted(times, reverse=True), "newest commits first"

    @pytest.mark.asyncio
    async def test_commits_only_from_listed_repositories(
        self,
        feed_service: FeedService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """Commits of older repositories beyond the cap are excluded."""
        oldest = await create_repo(people.alice, "oldest")
        await record_commit(people.alice, oldest.slug, minutes=99)
        for n in range(DASHBOARD_REPOSITORIES):
            await create_repo(people.alice, f"newer {n}")

        dashboard = await feed_service.dashboard(people.alice)

        assert dashboard.recent_commits == [], "oldest repository is not listed"

    @pytest.mark.asyncio
    async def test_issues_authored_or_assigned_and_open(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed_service: FeedService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Open issues authored by or assigned to the actor are listed."""
        issues = IssueService(session_factory)
        repo = await create_repo(people.alice)
        authored = await issues.create_issue(
            people.bob, repo.slug, CreateIssueInput(title="mine")
        )
        assigned = await issues.create_issue(
            people.carol,
            repo.slug,
            CreateIssueInput(title="for bob", assignee_id=people.bob.user_id),
        )
        closed = await issues.create_issue(
            people.bob, repo.slug, CreateIssueInput(title="done")
        )
        await issues.update_issue(
            people.bob,
            repo.slug,
            closed.id,
            UpdateIssueInput(title="done", status=IssueStatus.CLOSED),
        )
        await issues.create_issue(
            people.carol, repo.slug, CreateIssueInput(title="unrelated")
        )

        dashboard = await feed_service.dashboard(people.bob)

        assert [issue.id for issue in dashboard.issues] == [assigned.id, authored.id]

    @pytest.mark.asyncio
    async def test_hidden_repositories_are_excluded(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed_service: FeedService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Pull requests in repositories that became private drop out."""
        pulls = PullRequestService(session_factory)
        repo = await create_repo(people.alice)
        await pulls.create_pull_request(people.bob, repo.slug, _pull_input("pr"))
        async with session_factory() as session, session.begin():
            await session.execute(
                update(Repository)
                .where(Repository.slug == repo.slug)
                .values(is_private=True)
            )

        dashboard = await feed_service.dashboard(people.bob)

        assert dashboard.pull_requests == [], "hidden pull requests must not leak"


class TestHome:
    """Tests for FeedService.home."""

    @pytest.mark.asyncio
    async def test_trending_by_stars_with_id_tiebreak(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed_service: FeedService,
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Repositories are ranked by stars, ties broken by newest id."""
        repos = [await create_repo(people.alice, f"repo {n}") for n in range(8)]
        secret = await create_repo(people.alice, "secret", is_private=True)
        stars = {repo.id: 10 for repo in repos}
        stars[repos[0].id] = 500
        stars[secret.id] = 9999
        await _set_stars(session_factory, stars)

        home = await feed_service.home()

        ids = [repo.id for repo in home.trending_repositories]
        assert len(ids) == HOME_REPOSITORIES, "trending list is capped"
        assert ids[0] == repos[0].id, "most starred first"
        assert ids[1:] == sorted(ids[1:], reverse=True), "ties by id descending"
        assert secret.id not in ids, "private repositories never trend"

    @pytest.mark.asyncio
    async def test_stats_count_public_only(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed_service: FeedService,
        create_repo: CreateRepoFn,
        record_commit: RecordCommitFn,
        people: People,
    ) -> None:
        """Global counters ignore private repositories and their children."""
        issues = IssueService(session_factory)
        public = await create_repo(people.alice, "public")
        secret = await create_repo(people.alice, "secret", is_private=True)
        for repo in (public, secret):
            await record_commit(people.alice, repo.slug)
            await issues.create_issue(
                people.alice, repo.slug, CreateIssueInput(title="bug")
            )

        home = await feed_service.home()

        assert home.stats.repositories == 1, "public repositories"
        assert home.stats.commits == 1, "public commits"
        assert home.stats.issues == 1, "public issues"
        assert home.stats.pull_requests == 0, "public pull requests"
        assert [issue.repository.slug for issue in home.recent_issues] == [
            public.slug
        ], "private issues are not shown"


class TestRepositoryCounts:
    """Tests for the grouped counters."""

    @pytest.mark.asyncio
    async def test_zero_fills_missing_repositories(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        create_repo: CreateRepoFn,
        people: People,
    ) -> None:
        """Repositories without children are reported with zero counts."""
        issues = IssueService(session_factory)
        busy = await create_repo(people.alice, "busy")
        quiet = await create_repo(people.alice, "quiet")
        first = await issues.create_issue(
            people.bob, busy.slug, CreateIssueInput(title="one")
        )
        await issues.create_issue(people.bob, busy.slug, CreateIssueInput(title="two"))
        await issues.update_issue(
            people.bob,
            busy.slug,
            first.id,
            UpdateIssueInput(title="one", status=IssueStatus.CLOSED),
        )

        async with session_factory() as session:
            counts = await repository_counts(session, [busy.id, quiet.id])

        assert counts[busy.id].issues_count == 2, "total issues"
        assert counts[busy.id].open_issues_count == 1, "open issues"
        assert counts[quiet.id].issues_count == 0, "quiet repository has none"
        assert counts[quiet.id].pull_requests_count == 0, "no pull requests"

    @pytest.mark.asyncio
    async def test_empty_input_returns_empty_mapping(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """No ids means no queries and no counts."""
        async with session_factory() as session:
            assert await repository_counts(session, []) == {}
