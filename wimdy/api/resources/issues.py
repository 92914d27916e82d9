"""Issue resources nested under a repository."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from wimdy.api.rendering import (
    actor_of,
    enum_param,
    page_request,
    read_input,
    render,
    render_empty,
)
from wimdy.issues import CreateIssueInput, UpdateIssueInput
from wimdy.lifecycle import IssueStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from wimdy.api.factory import Services

__all__ = ["IssueCollectionResource", "IssueResource"]


class IssueCollectionResource:
    """``GET|POST /repositories/{slug}/issues``."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, req: Request, resp: Response, slug: str) -> None:
        """Render one page of issues, optionally filtered by ``?status=``."""
        page = page_request(req, self._services.config.issues_per_page)
        status = enum_param(req, "status", IssueStatus)
        render(
            resp,
            await self._services.issues.list_issues(
                actor_of(req), slug, page, status=status
            ),
        )

    async def on_post(self, req: Request, resp: Response, slug: str) -> None:
        """File an issue from the JSON body."""
        data = await read_input(req, CreateIssueInput)
        view = await self._services.issues.create_issue(actor_of(req), slug, data)
        render(resp, view, HTTPStatus.CREATED)


class IssueResource:
    """``GET|PUT|DELETE /repositories/{slug}/issues/{issue_id}``."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(
        self, req: Request, resp: Response, slug: str, issue_id: int
    ) -> None:
        """Render one issue."""
        render(
            resp,
            await self._services.issues.get_issue(actor_of(req), slug, issue_id),
        )

    async def on_put(
        self, req: Request, resp: Response, slug: str, issue_id: int
    ) -> None:
        """Replace the issue's attributes, applying any status change."""
        data = await read_input(req, UpdateIssueInput)
        view = await self._services.issues.update_issue(
            actor_of(req), slug, issue_id, data
        )
        render(resp, view)

    async def on_delete(
        self, req: Request, resp: Response, slug: str, issue_id: int
    ) -> None:
        """Delete the issue."""
        await self._services.issues.delete_issue(actor_of(req), slug, issue_id)
        render_empty(resp)
