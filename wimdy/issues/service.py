"""Issue CRUD driven through the issue lifecycle."""

from __future__ import annotations

import typing as typ

from sqlalchemy import select

from wimdy.common.errors import EntityKind, NotFoundError
from wimdy.common.pagination import Page, PageRequest, apply_page, count_rows
from wimdy.common.time import utcnow
from wimdy.common.validation import MAX_SQL_INTEGER, FieldChecks
from wimdy.config import WimdyConfig
from wimdy.lifecycle import (
    IssueStatus,
    check_issue_invariant,
    transition_issue,
)
from wimdy.mapping import ISSUE_VIEW_OPTIONS, to_issue_view
from wimdy.observability import DomainEventLogger
from wimdy.policy import ensure_child_creatable, ensure_child_writable
from wimdy.repositories.lookup import (
    load_acting_user,
    load_readable_repository,
    load_repository,
)
from wimdy.store.storage import Issue, User

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.issues.models import CreateIssueInput, UpdateIssueInput
    from wimdy.policy import Actor
    from wimdy.store.storage import Repository
    from wimdy.views import IssueView

    type SessionFactory = async_sessionmaker[AsyncSession]


async def _check_assignee(
    session: AsyncSession, checks: FieldChecks, assignee_id: int | None
) -> None:
    if assignee_id is None:
        return
    in_range = 1 <= assignee_id <= MAX_SQL_INTEGER
    if not in_range or await session.get(User, assignee_id) is None:
        checks.fail("assignee_id", f"user {assignee_id} does not exist")


class IssueService:
    """List, file, show, update and delete issues of a repository.

    Issues inherit the read visibility of their repository. They may be
    edited or deleted by their author and by the repository owner.
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

    async def list_issues(
        self,
        actor: Actor,
        slug: str,
        page: PageRequest | None = None,
        *,
        status: IssueStatus | None = None,
    ) -> Page[IssueView]:
        """List a repository's issues, newest first, optionally by status."""
        request = page or PageRequest(per_page=self._config.issues_per_page)
        async with self._sf() as session:
            repo = await load_readable_repository(session, actor, slug)
            query = select(Issue).where(Issue.repository_id == repo.id)
            if status is not None:
                query = query.where(Issue.status == status)
            query = query.order_by(Issue.created_at.desc(), Issue.id.desc())
            total = await count_rows(session, query)
            issues = await session.scalars(
                apply_page(query.options(*ISSUE_VIEW_OPTIONS), request)
            )
            items = [to_issue_view(issue) for issue in issues]
        return Page(
            items=items, page=request.page, per_page=request.per_page, total=total
        )

    async def create_issue(
        self, actor: Actor, slug: str, data: CreateIssueInput
    ) -> IssueView:
        """File a new open issue against the repository ``slug``.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        NotFoundError
            If the repository is missing or hidden from the actor.
        ValidationError
            If the title is blank, a label is blank or the assignee is unknown.

        """
        operation = "create issue"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            author = await load_acting_user(session, actor, operation)
            repo = await load_repository(session, slug)
            ensure_child_creatable(actor, repo, slug, operation)

            checks = FieldChecks()
            title = checks.required_text("title", data.title)
            labels = checks.label_set("labels", data.labels)
            await _check_assignee(session, checks, data.assignee_id)
            checks.raise_if_failed()

            issue = Issue(
                repository_id=repo.id,
                author_id=author.id,
                assignee_id=data.assignee_id,
                title=title,
                description=checks.optional_text(data.description),
                status=IssueStatus.OPEN,
                priority=data.priority,
                labels=labels,
                closed_at=None,
            )
            check_issue_invariant(issue)
            session.add(issue)
            await session.flush()
            return to_issue_view(await self._reload(session, issue.id))

    async def get_issue(self, actor: Actor, slug: str, issue_id: int) -> IssueView:
        """Return one issue of a readable repository.

        Raises
        ------
        NotFoundError
            If the repository or issue is missing or hidden from the actor.

        """
        async with self._sf() as session:
            repo = await load_readable_repository(session, actor, slug)
            return to_issue_view(await self._load_issue(session, repo, issue_id))

    async def update_issue(
        self, actor: Actor, slug: str, issue_id: int, data: UpdateIssueInput
    ) -> IssueView:
        """Replace an issue's attributes, applying any status transition.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.
        NotFoundError
            If the repository or issue is missing or hidden from the actor.
        PermissionDeniedError
            If the actor is neither the author nor the repository owner.
        ValidationError
            If an attribute is invalid.

        """
        operation = "update issue"
        actor_id = actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            repo = await load_readable_repository(session, actor, slug)
            issue = await self._load_issue(session, repo, issue_id)
            ensure_child_writable(actor, repo, issue.author_id, operation)

            checks = FieldChecks()
            title = checks.required_text("title", data.title)
            labels = checks.label_set("labels", data.labels)
            await _check_assignee(session, checks, data.assignee_id)
            checks.raise_if_failed()

            transition = transition_issue(issue, data.status, now=utcnow())
            check_issue_invariant(issue)
            issue.title = title
            issue.description = checks.optional_text(data.description)
            issue.priority = data.priority
            issue.labels = labels
            issue.assignee_id = data.assignee_id
            await session.flush()
            view = to_issue_view(await self._reload(session, issue.id))

        if transition.changed:
            self._events.log_issue_status_changed(
                issue_id=view.id,
                previous=transition.previous,
                current=transition.current,
                actor_id=actor_id,
            )
        return view

    async def delete_issue(self, actor: Actor, slug: str, issue_id: int) -> None:
        """Delete an issue authored by the actor or in the actor's repository."""
        operation = "delete issue"
        actor.require_user_id(operation)
        async with self._sf() as session, session.begin():
            repo = await load_readable_repository(session, actor, slug)
            issue = await self._load_issue(session, repo, issue_id)
            ensure_child_writable(actor, repo, issue.author_id, operation)
            await session.delete(issue)

    async def _load_issue(
        self, session: AsyncSession, repo: Repository, issue_id: int
    ) -> Issue:
        issue = await session.scalar(
            select(Issue)
            .where(Issue.id == issue_id, Issue.repository_id == repo.id)
            .options(*ISSUE_VIEW_OPTIONS)
        )
        if issue is None:
            raise NotFoundError(EntityKind.ISSUE, issue_id)
        return issue

    async def _reload(self, session: AsyncSession, issue_id: int) -> Issue:
        result = await session.scalars(
            select(Issue)
            .where(Issue.id == issue_id)
            .options(*ISSUE_VIEW_OPTIONS)
            .execution_options(populate_existing=True)
        )
        return result.one()
