"""Repository CRUD service.

Every write opens one session and one transaction, so a request either
commits all of its changes or none of them.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError

from wimdy.aggregation.counts import repository_counts
from wimdy.common.errors import UniquenessConflictError
from wimdy.common.pagination import Page, PageRequest, apply_page, count_rows
from wimdy.common.slug import repo_slug
from wimdy.common.validation import FieldChecks
from wimdy.config import WimdyConfig
from wimdy.mapping import (
    COMMIT_VIEW_OPTIONS,
    REPOSITORY_VIEW_OPTIONS,
    to_repository_detail,
    to_repository_view,
)
from wimdy.observability import DomainEventLogger
from wimdy.policy import ensure_repository_writable, visible_repositories
from wimdy.repositories.lookup import (
    load_acting_user,
    load_readable_repository,
    load_repository,
)
from wimdy.store.storage import (
    Commit,
    Issue,
    PullRequest,
    PullRequestCommit,
    Repository,
)
from wimdy.views import RepositoryCounts

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.common.slug import SuffixSource
    from wimdy.policy import Actor
    from wimdy.repositories.models import (
        CreateRepositoryInput,
        UpdateRepositoryInput,
    )
    from wimdy.views import RepositoryDetail, RepositoryView

    type SessionFactory = async_sessionmaker[AsyncSession]

RECENT_COMMITS_LIMIT = 10


class RepositoryService:
    """Create, list, show, update and delete repositories.

    Parameters
    ----------
    session_factory:
        Async session factory for the entity store.
    config:
        Page sizes and slug retry limit. Defaults to :class:`WimdyConfig`.
    events:
        Domain event logger. A fresh one is created when omitted.
    suffix_source:
        Random source for slug disambiguators; tests inject a fixed one.

    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        config: WimdyConfig | None = None,
        events: DomainEventLogger | None = None,
        suffix_source: SuffixSource | None = None,
    ) -> None:
        """Configure the service with its session factory and collaborators."""
        self._sf = session_factory
        self._config = config or WimdyConfig()
        self._events = events or DomainEventLogger()
        self._suffix_source = suffix_source

    async def create_repository(
        self, actor: Actor, data: CreateRepositoryInput
    ) -> RepositoryView:
        """Create a repository owned by ``actor``.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        ValidationError
            If the name or default branch is blank.
        UniquenessConflictError
            If no free slug was found within ``slug_max_attempts`` tries, or
            a concurrent request claimed the chosen slug first.

        """
        operation = "create repository"
        actor.require_user_id(operation)
        checks = FieldChecks()
        name = checks.required_text("name", data.name)
        default_branch = checks.required_text("default_branch", data.default_branch)
        checks.raise_if_failed()

        async with self._sf() as session, session.begin():
            owner = await load_acting_user(session, actor, operation)
            slug = await self._allocate_slug(session, name)
            repo = Repository(
                name=name,
                slug=slug,
                description=checks.optional_text(data.description),
                user_id=owner.id,
                is_private=data.is_private,
                is_fork=data.is_fork,
                language=checks.optional_text(data.language),
                stars_count=0,
                forks_count=0,
                default_branch=default_branch,
            )
            session.add(repo)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise UniquenessConflictError("slug", slug) from exc
            view = to_repository_view(await self._reload(session, repo.id))

        self._events.log_repository_created(
            slug=view.slug, owner_id=view.owner.id, is_private=view.is_private
        )
        return view

    async def list_repositories(
        self, actor: Actor, page: PageRequest | None = None
    ) -> Page[RepositoryView]:
        """List public repositories plus the actor's private ones, newest first."""
        request = page or PageRequest(per_page=self._config.repositories_per_page)
        query = (
            select(Repository)
            .where(visible_repositories(actor))
            .order_by(Repository.created_at.desc(), Repository.id.desc())
        )
        async with self._sf() as session:
            total = await count_rows(session, query)
            repos = await session.scalars(
                apply_page(query.options(*REPOSITORY_VIEW_OPTIONS), request)
            )
            items = [to_repository_view(repo) for repo in repos]
        return Page(
            items=items, page=request.page, per_page=request.per_page, total=total
        )

    async def get_repository(self, actor: Actor, slug: str) -> RepositoryDetail:
        """Return a repository with its counters and ten newest commits.

        Raises
        ------
        NotFoundError
            If the slug is unknown or the repository is hidden from the actor.

        """
        async with self._sf() as session:
            repo = await load_readable_repository(session, actor, slug)
            counts = await repository_counts(session, [repo.id])
            commits = await session.scalars(
                select(Commit)
                .where(Commit.repository_id == repo.id)
                .order_by(Commit.committed_at.desc(), Commit.id.desc())
                .limit(RECENT_COMMITS_LIMIT)
                .options(*COMMIT_VIEW_OPTIONS)
            )
            return to_repository_detail(
                repo, counts.get(repo.id, RepositoryCounts()), list(commits)
            )

    async def update_repository(
        self, actor: Actor, slug: str, data: UpdateRepositoryInput
    ) -> RepositoryView:
        """Replace the editable attributes of a repository owned by ``actor``.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        NotFoundError
            If the repository is missing or hidden from the actor.
        PermissionDeniedError
            If the actor can see but does not own the repository.
        ValidationError
            If the name or default branch is blank.

        """
        operation = "update repository"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            repo = await load_repository(session, slug)
            ensure_repository_writable(actor, repo, slug, operation)

            checks = FieldChecks()
            name = checks.required_text("name", data.name)
            default_branch = checks.required_text(
                "default_branch", data.default_branch
            )
            checks.raise_if_failed()

            repo.name = name
            repo.description = checks.optional_text(data.description)
            repo.is_private = data.is_private
            repo.language = checks.optional_text(data.language)
            repo.default_branch = default_branch
            await session.flush()
            return to_repository_view(await self._reload(session, repo.id))

    async def delete_repository(self, actor: Actor, slug: str) -> None:
        """Delete a repository with its issues, pull requests and commits.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        NotFoundError
            If the repository is missing or hidden from the actor.
        PermissionDeniedError
            If the actor can see but does not own the repository.

        """
        operation = "delete repository"
        actor_id = actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            repo = await load_repository(session, slug)
            ensure_repository_writable(actor, repo, slug, operation)

            pull_request_ids = select(PullRequest.id).where(
                PullRequest.repository_id == repo.id
            )
            commit_ids = select(Commit.id).where(Commit.repository_id == repo.id)
            await session.execute(
                delete(PullRequestCommit).where(
                    or_(
                        PullRequestCommit.pull_request_id.in_(pull_request_ids),
                        PullRequestCommit.commit_id.in_(commit_ids),
                    )
                )
            )
            await session.execute(
                delete(PullRequest).where(PullRequest.repository_id == repo.id)
            )
            await session.execute(delete(Issue).where(Issue.repository_id == repo.id))
            await session.execute(
                delete(Commit).where(Commit.repository_id == repo.id)
            )
            await session.delete(repo)

        self._events.log_repository_deleted(slug=slug, actor_id=actor_id)

    async def _allocate_slug(self, session: AsyncSession, name: str) -> str:
        candidate = ""
        for _ in range(self._config.slug_max_attempts):
            candidate = repo_slug(name, suffix_source=self._suffix_source)
            taken = await session.scalar(
                select(Repository.id).where(Repository.slug == candidate)
            )
            if taken is None:
                return candidate
        raise UniquenessConflictError("slug", candidate)

    async def _reload(self, session: AsyncSession, repo_id: int) -> Repository:
        result = await session.scalars(
            select(Repository)
            .where(Repository.id == repo_id)
            .options(*REPOSITORY_VIEW_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return result.one()
