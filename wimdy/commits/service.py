"""Commit recording and listing."""

from __future__ import annotations

import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from wimdy.common.errors import UniquenessConflictError
from wimdy.common.pagination import Page, PageRequest, apply_page, count_rows
from wimdy.common.time import utcnow
from wimdy.common.validation import FieldChecks
from wimdy.config import WimdyConfig
from wimdy.mapping import COMMIT_VIEW_OPTIONS, to_commit_view
from wimdy.policy import ensure_repository_writable
from wimdy.repositories.lookup import (
    load_acting_user,
    load_readable_repository,
    load_repository,
)
from wimdy.store.storage import Commit

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.commits.models import RecordCommitInput
    from wimdy.policy import Actor
    from wimdy.views import CommitView

    type SessionFactory = async_sessionmaker[AsyncSession]


class CommitService:
    """Record commits pushed by a repository owner and list them.

    Parameters
    ----------
    session_factory:
        Async session factory for the entity store.
    config:
        Supplies the default commit page size.

    """

    def __init__(
        self, session_factory: SessionFactory, *, config: WimdyConfig | None = None
    ) -> None:
        """Configure the service with its session factory."""
        self._sf = session_factory
        self._config = config or WimdyConfig()

    async def record_commit(
        self, actor: Actor, slug: str, data: RecordCommitInput
    ) -> CommitView:
        """Record a commit on the repository ``slug``.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        NotFoundError
            If the repository is missing or hidden from the actor.
        PermissionDeniedError
            If the actor does not own the repository.
        UniquenessConflictError
            If a commit with the same hash already exists or is recorded
            concurrently.
        ValidationError
            If the message or branch is blank.

        """
        operation = "record commit"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            author = await load_acting_user(session, actor, operation)
            repo = await load_repository(session, slug)
            ensure_repository_writable(actor, repo, slug, operation)

            checks = FieldChecks()
            message = checks.required_text("message", data.message)
            branch = checks.required_text("branch", data.branch)
            checks.raise_if_failed()

            if await self._hash_recorded(session, data.hash):
                raise UniquenessConflictError("hash", data.hash)

            commit = Commit(
                repository_id=repo.id,
                author_id=author.id,
                hash=data.hash,
                message=message,
                branch=branch,
                author_name=author.name,
                author_email=author.email,
                files_changed=data.files_changed,
                additions=data.additions,
                deletions=data.deletions,
                committed_at=data.committed_at or utcnow(),
            )
            session.add(commit)
            try:
                await session.flush()
            except IntegrityError as exc:
                raise UniquenessConflictError("hash", data.hash) from exc
            result = await session.scalars(
                select(Commit)
                .where(Commit.id == commit.id)
                .options(*COMMIT_VIEW_OPTIONS)
                .execution_options(populate_existing=True)
            )
            return to_commit_view(result.one())

    @staticmethod
    async def _hash_recorded(session: AsyncSession, commit_hash: str) -> bool:
        existing = await session.scalar(
            select(Commit.id).where(Commit.hash == commit_hash)
        )
        return existing is not None

    async def list_commits(
        self,
        actor: Actor,
        slug: str,
        page: PageRequest | None = None,
        *,
        branch: str | None = None,
    ) -> Page[CommitView]:
        """List a repository's commits by authoring time, newest first."""
        request = page or PageRequest(per_page=self._config.commits_per_page)
        async with self._sf() as session:
            repo = await load_readable_repository(session, actor, slug)
            query = select(Commit).where(Commit.repository_id == repo.id)
            if branch:
                query = query.where(Commit.branch == branch)
            query = query.order_by(Commit.committed_at.desc(), Commit.id.desc())
            total = await count_rows(session, query)
            commits = await session.scalars(
                apply_page(query.options(*COMMIT_VIEW_OPTIONS), request)
            )
            items = [to_commit_view(commit) for commit in commits]
        return Page(
            items=items, page=request.page, per_page=request.per_page, total=total
        )
