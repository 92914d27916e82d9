"""Dashboard and home feeds.

Feeds are computed per request with no caching. Every ordering ends with
``id DESC`` so rows sharing a timestamp or star count come back in a
stable order, and each cap is a SQL ``LIMIT`` applied after filtering and
ordering.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import func, or_, select

from wimdy.lifecycle.states import IssueStatus, PullRequestStatus
from wimdy.mapping import (
    COMMIT_VIEW_OPTIONS,
    ISSUE_VIEW_OPTIONS,
    PULL_REQUEST_VIEW_OPTIONS,
    REPOSITORY_VIEW_OPTIONS,
    to_commit_view,
    to_issue_view,
    to_pull_request_view,
    to_repository_view,
)
from wimdy.policy import public_repositories, visible_repositories
from wimdy.store.storage import Commit, Issue, PullRequest, Repository
from wimdy.views import DashboardView, HomeStats, HomeView

if typ.TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.policy import Actor

    type SessionFactory = async_sessionmaker[AsyncSession]

DASHBOARD_REPOSITORIES = 5
DASHBOARD_COMMITS = 10
DASHBOARD_PULL_REQUESTS = 5
DASHBOARD_ISSUES = 5

HOME_REPOSITORIES = 6
HOME_COMMITS = 8
HOME_PULL_REQUESTS = 5
HOME_ISSUES = 5


async def _count(session: AsyncSession, query: Select) -> int:
    return int(await session.scalar(query) or 0)


class FeedService:
    """Build the signed-in dashboard and the public home feed."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Configure the service with its session factory."""
        self._sf = session_factory

    async def dashboard(self, actor: Actor) -> DashboardView:
        """Return the actor's dashboard.

        The feed holds the actor's five newest repositories, the ten newest
        commits across those repositories, up to five open pull requests the
        actor authored and up to five open issues the actor authored or is
        assigned to.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.

        """
        user_id = actor.require_user_id("view dashboard")
        visible = visible_repositories(actor)
        async with self._sf() as session:
            repos = list(
                await session.scalars(
                    select(Repository)
                    .where(Repository.user_id == user_id)
                    .order_by(Repository.created_at.desc(), Repository.id.desc())
                    .limit(DASHBOARD_REPOSITORIES)
                    .options(*REPOSITORY_VIEW_OPTIONS)
                )
            )
            repo_ids = [repo.id for repo in repos]

            commits: list[Commit] = []
            if repo_ids:
                commits = list(
                    await session.scalars(
                        select(Commit)
                        .where(Commit.repository_id.in_(repo_ids))
                        .order_by(Commit.committed_at.desc(), Commit.id.desc())
                        .limit(DASHBOARD_COMMITS)
                        .options(*COMMIT_VIEW_OPTIONS)
                    )
                )

            pulls = await session.scalars(
                select(PullRequest)
                .join(PullRequest.repository)
                .where(
                    visible,
                    PullRequest.author_id == user_id,
                    PullRequest.status == PullRequestStatus.OPEN,
                )
                .order_by(PullRequest.created_at.desc(), PullRequest.id.desc())
                .limit(DASHBOARD_PULL_REQUESTS)
                .options(*PULL_REQUEST_VIEW_OPTIONS)
            )
            pull_views = [to_pull_request_view(pull) for pull in pulls]

            issues = await session.scalars(
                select(Issue)
                .join(Issue.repository)
                .where(
                    visible,
                    or_(
                        Issue.author_id == user_id, Issue.assignee_id == user_id
                    ).self_group(),
                    Issue.status == IssueStatus.OPEN,
                )
                .order_by(Issue.created_at.desc(), Issue.id.desc())
                .limit(DASHBOARD_ISSUES)
                .options(*ISSUE_VIEW_OPTIONS)
            )
            issue_views = [to_issue_view(issue) for issue in issues]

            return DashboardView(
                repositories=[to_repository_view(repo) for repo in repos],
                recent_commits=[to_commit_view(commit) for commit in commits],
                pull_requests=pull_views,
                issues=issue_views,
            )

    async def home(self) -> HomeView:
        """Return the public home feed and its counters.

        Only public repositories and the entities inside them contribute,
        whoever is asking.
        """
        public = public_repositories()
        async with self._sf() as session:
            repos = await session.scalars(
                select(Repository)
                .where(public)
                .order_by(Repository.stars_count.desc(), Repository.id.desc())
                .limit(HOME_REPOSITORIES)
                .options(*REPOSITORY_VIEW_OPTIONS)
            )
            repo_views = [to_repository_view(repo) for repo in repos]

            commits = await session.scalars(
                select(Commit)
                .join(Commit.repository)
                .where(public)
                .order_by(Commit.committed_at.desc(), Commit.id.desc())
                .limit(HOME_COMMITS)
                .options(*COMMIT_VIEW_OPTIONS)
            )
            commit_views = [to_commit_view(commit) for commit in commits]

            pulls = await session.scalars(
                select(PullRequest)
                .join(PullRequest.repository)
                .where(public, PullRequest.status == PullRequestStatus.OPEN)
                .order_by(PullRequest.created_at.desc(), PullRequest.id.desc())
                .limit(HOME_PULL_REQUESTS)
                .options(*PULL_REQUEST_VIEW_OPTIONS)
            )
            pull_views = [to_pull_request_view(pull) for pull in pulls]

            issues = await session.scalars(
                select(Issue)
                .join(Issue.repository)
                .where(public, Issue.status == IssueStatus.OPEN)
                .order_by(Issue.created_at.desc(), Issue.id.desc())
                .limit(HOME_ISSUES)
                .options(*ISSUE_VIEW_OPTIONS)
            )
            issue_views = [to_issue_view(issue) for issue in issues]

            stats = HomeStats(
                repositories=await _count(
                    session, select(func.count(Repository.id)).where(public)
                ),
                issues=await _count(
                    session,
                    select(func.count(Issue.id))
                    .select_from(Issue)
                    .join(Issue.repository)
                    .where(public),
                ),
                pull_requests=await _count(
                    session,
                    select(func.count(PullRequest.id))
                    .select_from(PullRequest)
                    .join(PullRequest.repository)
                    .where(public),
                ),
                commits=await _count(
                    session,
                    select(func.count(Commit.id))
                    .select_from(Commit)
                    .join(Commit.repository)
                    .where(public),
                ),
            )

        return HomeView(
            trending_repositories=repo_views,
            recent_commits=commit_views,
            open_pull_requests=pull_views,
            recent_issues=issue_views,
            stats=stats,
        )
