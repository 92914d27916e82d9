"""Pull request CRUD, merge bookkeeping and commit association."""

from __future__ import annotations

import typing as typ

from sqlalchemy import delete, func, select

from wimdy.common.errors import EntityKind, FieldIssue, NotFoundError, ValidationError
from wimdy.common.pagination import Page, PageRequest, apply_page, count_rows
from wimdy.common.time import utcnow
from wimdy.common.validation import FieldChecks
from wimdy.config import WimdyConfig
from wimdy.lifecycle import (
    PullRequestStatus,
    check_pull_request_invariant,
    transition_pull_request,
)
from wimdy.mapping import (
    PULL_REQUEST_DETAIL_OPTIONS,
    PULL_REQUEST_VIEW_OPTIONS,
    to_pull_request_detail,
    to_pull_request_view,
)
from wimdy.observability import DomainEventLogger
from wimdy.policy import (
    can_merge_pull_request,
    ensure_child_creatable,
    ensure_child_writable,
)
from wimdy.repositories.lookup import (
    load_acting_user,
    load_readable_repository,
    load_repository,
)
from wimdy.store.storage import Commit, PullRequest, PullRequestCommit

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.policy import Actor
    from wimdy.pulls.models import (
        CreatePullRequestInput,
        LinkCommitsInput,
        UpdatePullRequestInput,
    )
    from wimdy.store.storage import Repository
    from wimdy.views import PullRequestDetail, PullRequestView

    type SessionFactory = async_sessionmaker[AsyncSession]


def _check_branches(
    checks: FieldChecks, source_branch: str, target_branch: str
) -> tuple[str, str]:
    source = checks.required_text("source_branch", source_branch)
    target = checks.required_text("target_branch", target_branch)
    if source and source == target:
        checks.fail("target_branch", "target branch must differ from source branch")
    return source, target


def _is_plain_merge(
    pull: PullRequest,
    data: UpdatePullRequestInput,
    *,
    title: str,
    description: str | None,
    source: str,
    target: str,
) -> bool:
    """Return whether ``data`` merges an open pull request and edits nothing else."""
    return (
        pull.status == PullRequestStatus.OPEN
        and data.status == PullRequestStatus.MERGED
        and (title, description, source, target, data.is_draft)
        == (
            pull.title,
            pull.description,
            pull.source_branch,
            pull.target_branch,
            pull.is_draft,
        )
    )


class PullRequestService:
    """List, open, show, update, delete and link commits to pull requests.

    Pull requests inherit the read visibility of their repository. They may
    be edited or deleted by their author and by the repository owner. Any
    signed-in reader may merge an open pull request. A merged pull request
    accepts no further changes.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        config: WimdyConfig | None = None,
        events: DomainEventLogger | None = None,
    ) -> None:
        """Configure the service with its session factory and collaborators."""
        self._sf = session_factory
        self._config = config or WimdyConfig()
        self._events = events or DomainEventLogger()

    async def list_pull_requests(
        self,
        actor: Actor,
        slug: str,
        page: PageRequest | None = None,
        *,
        status: PullRequestStatus | None = None,
    ) -> Page[PullRequestView]:
        """List a repository's pull requests, newest first."""
        request = page or PageRequest(per_page=self._config.pull_requests_per_page)
        async with self._sf() as session:
            repo = await load_readable_repository(session, actor, slug)
            query = select(PullRequest).where(PullRequest.repository_id == repo.id)
            if status is not None:
                query = query.where(PullRequest.status == status)
            query = query.order_by(
                PullRequest.created_at.desc(), PullRequest.id.desc()
            )
            total = await count_rows(session, query)
            pulls = await session.scalars(
                apply_page(query.options(*PULL_REQUEST_VIEW_OPTIONS), request)
            )
            items = [to_pull_request_view(pull) for pull in pulls]
        return Page(
            items=items, page=request.page, per_page=request.per_page, total=total
        )

    async def create_pull_request(
        self, actor: Actor, slug: str, data: CreatePullRequestInput
    ) -> PullRequestDetail:
        """Open a pull request against the repository ``slug``.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        NotFoundError
            If the repository is missing or hidden from the actor.
        ValidationError
            If the title or a branch is blank, or both branches are equal.

        """
        operation = "create pull request"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            author = await load_acting_user(session, actor, operation)
            repo = await load_repository(session, slug)
            ensure_child_creatable(actor, repo, slug, operation)

            checks = FieldChecks()
            title = checks.required_text("title", data.title)
            source, target = _check_branches(
                checks, data.source_branch, data.target_branch
            )
            checks.raise_if_failed()

            pull = PullRequest(
                repository_id=repo.id,
                author_id=author.id,
                title=title,
                description=checks.optional_text(data.description),
                source_branch=source,
                target_branch=target,
                status=PullRequestStatus.OPEN,
                is_draft=data.is_draft,
                commits_count=0,
                files_changed=0,
                merged_at=None,
                merged_by_id=None,
            )
            check_pull_request_invariant(pull)
            session.add(pull)
            await session.flush()
            return to_pull_request_detail(await self._reload(session, pull.id))

    async def get_pull_request(
        self, actor: Actor, slug: str, pull_request_id: int
    ) -> PullRequestDetail:
        """Return one pull request with its linked commits.

        Raises
        ------
        NotFoundError
            If the repository or pull request is missing or hidden.

        """
        async with self._sf() as session:
            repo = await load_readable_repository(session, actor, slug)
            pull = await self._load_pull_request(session, repo, pull_request_id)
            return to_pull_request_detail(pull)

    async def update_pull_request(
        self,
        actor: Actor,
        slug: str,
        pull_request_id: int,
        data: UpdatePullRequestInput,
    ) -> PullRequestDetail:
        """Replace a pull request's attributes, applying any status transition.

        Merging stamps ``merged_at`` and records the actor as ``merged_by``.
        Any signed-in reader of the repository may merge an open pull request
        as long as the request leaves every other attribute unchanged.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous or names an unknown user.
        NotFoundError
            If the repository or pull request is missing or hidden.
        PermissionDeniedError
            If the actor is neither the author nor the repository owner and
            the request is more than a plain merge.
        InvalidTransitionError
            If the pull request is merged or the status change is illegal.
        ValidationError
            If another attribute is invalid.

        """
        operation = "update pull request"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            actor_id = (await load_acting_user(session, actor, operation)).id
            repo = await load_readable_repository(session, actor, slug)
            pull = await self._load_pull_request(session, repo, pull_request_id)

            checks = FieldChecks()
            title = checks.required_text("title", data.title)
            source, target = _check_branches(
                checks, data.source_branch, data.target_branch
            )
            checks.raise_if_failed()
            description = checks.optional_text(data.description)

            plain_merge = _is_plain_merge(
                pull,
                data,
                title=title,
                description=description,
                source=source,
                target=target,
            )
            if not (plain_merge and can_merge_pull_request(actor, repo)):
                ensure_child_writable(actor, repo, pull.author_id, operation)

            transition = transition_pull_request(
                pull, data.status, actor_id=actor_id, now=utcnow()
            )
            check_pull_request_invariant(pull)
            pull.title = title
            pull.description = description
            pull.source_branch = source
            pull.target_branch = target
            pull.is_draft = data.is_draft
            await session.flush()
            view = to_pull_request_detail(await self._reload(session, pull.id))

        if transition.changed:
            self._events.log_pull_request_status_changed(
                pull_request_id=view.id,
                previous=transition.previous,
                current=transition.current,
                actor_id=actor_id,
            )
        return view

    async def delete_pull_request(
        self, actor: Actor, slug: str, pull_request_id: int
    ) -> None:
        """Delete a pull request and its commit links."""
        operation = "delete pull request"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            repo = await load_readable_repository(session, actor, slug)
            pull = await self._load_pull_request(session, repo, pull_request_id)
            ensure_child_writable(actor, repo, pull.author_id, operation)
            await session.execute(
                delete(PullRequestCommit).where(
                    PullRequestCommit.pull_request_id == pull.id
                )
            )
            await session.delete(pull)

    async def link_commits(
        self,
        actor: Actor,
        slug: str,
        pull_request_id: int,
        data: LinkCommitsInput,
    ) -> PullRequestDetail:
        """Associate recorded commits of the same repository with a pull request.

        Hashes that are already linked are skipped. ``commits_count`` and
        ``files_changed`` are recomputed from the resulting links.

        Raises
        ------
        ValidationError
            If a hash names no commit of this repository, or the pull
            request is already merged.

        """
        operation = "link commits"
        actor.require_user_id(operation)
        hashes = list(dict.fromkeys(data.hashes))
        async with self._sf() as session, session.begin():
            repo = await load_readable_repository(session, actor, slug)
            pull = await self._load_pull_request(session, repo, pull_request_id)
            ensure_child_writable(actor, repo, pull.author_id, operation)
            if pull.status == PullRequestStatus.MERGED:
                raise ValidationError.for_field(
                    "hashes", "merged pull requests cannot change"
                )

            commits = {
                commit.hash: commit.id
                for commit in await session.scalars(
                    select(Commit).where(
                        Commit.repository_id == repo.id, Commit.hash.in_(hashes)
                    )
                )
            }
            missing = [value for value in hashes if value not in commits]
            if missing:
                raise ValidationError(
                    [
                        FieldIssue("hashes", f"unknown commit {value}")
                        for value in missing
                    ]
                )

            linked = set(
                await session.scalars(
                    select(PullRequestCommit.commit_id).where(
                        PullRequestCommit.pull_request_id == pull.id
                    )
                )
            )
            for value in hashes:
                if commits[value] not in linked:
                    session.add(
                        PullRequestCommit(
                            pull_request_id=pull.id, commit_id=commits[value]
                        )
                    )
            await session.flush()
            await self._refresh_commit_stats(session, pull)
            await session.flush()
            return to_pull_request_detail(await self._reload(session, pull.id))

    async def _refresh_commit_stats(
        self, session: AsyncSession, pull: PullRequest
    ) -> None:
        row = (
            await session.execute(
                select(
                    func.count(Commit.id),
                    func.coalesce(func.sum(Commit.files_changed), 0),
                )
                .join(PullRequestCommit, PullRequestCommit.commit_id == Commit.id)
                .where(PullRequestCommit.pull_request_id == pull.id)
            )
        ).one()
        pull.commits_count = int(row[0])
        pull.files_changed = int(row[1])

    async def _load_pull_request(
        self, session: AsyncSession, repo: Repository, pull_request_id: int
    ) -> PullRequest:
        pull = await session.scalar(
            select(PullRequest)
            .where(
                PullRequest.id == pull_request_id,
                PullRequest.repository_id == repo.id,
            )
            .options(*PULL_REQUEST_DETAIL_OPTIONS)
        )
        if pull is None:
            raise NotFoundError(EntityKind.PULL_REQUEST, pull_request_id)
        return pull

    async def _reload(
        self, session: AsyncSession, pull_request_id: int
    ) -> PullRequest:
        result = await session.scalars(
            select(PullRequest)
            .where(PullRequest.id == pull_request_id)
            .options(*PULL_REQUEST_DETAIL_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return result.one()
