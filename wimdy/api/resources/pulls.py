"""Pull request resources nested under a repository."""

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
from wimdy.lifecycle import PullRequestStatus
from wimdy.pulls import (
    CreatePullRequestInput,
    LinkCommitsInput,
    UpdatePullRequestInput,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from wimdy.api.factory import Services

__all__ = [
    "PullRequestCollectionResource",
    "PullRequestCommitsResource",
    "PullRequestResource",
]


class PullRequestCollectionResource:
    """``GET|POST /repositories/{slug}/pull-requests``."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, req: Request, resp: Response, slug: str) -> None:
        """Render one page of pull requests, optionally filtered by status."""
        page = page_request(req, self._services.config.pull_requests_per_page)
        status = enum_param(req, "status", PullRequestStatus)
        render(
            resp,
            await self._services.pull_requests.list_pull_requests(
                actor_of(req), slug, page, status=status
            ),
        )

    async def on_post(self, req: Request, resp: Response, slug: str) -> None:
        """Open a pull request from the JSON body."""
        data = await read_input(req, CreatePullRequestInput)
        view = await self._services.pull_requests.create_pull_request(
            actor_of(req), slug, data
        )
        render(resp, view, HTTPStatus.CREATED)


class PullRequestResource:
    """``GET|PUT|DELETE /repositories/{slug}/pull-requests/{pull_request_id}``."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(
        self, req: Request, resp: Response, slug: str, pull_request_id: int
    ) -> None:
        """Render one pull request with its linked commits."""
        render(
            resp,
            await self._services.pull_requests.get_pull_request(
                actor_of(req), slug, pull_request_id
            ),
        )

    async def on_put(
        self, req: Request, resp: Response, slug: str, pull_request_id: int
    ) -> None:
        """Replace the pull request's attributes, applying any status change."""
        data = await read_input(req, UpdatePullRequestInput)
        view = await self._services.pull_requests.update_pull_request(
            actor_of(req), slug, pull_request_id, data
        )
        render(resp, view)

    async def on_delete(
        self, req: Request, resp: Response, slug: str, pull_request_id: int
    ) -> None:
        """Delete the pull request."""
        await self._services.pull_requests.delete_pull_request(
            actor_of(req), slug, pull_request_id
        )
        render_empty(resp)


class PullRequestCommitsResource:
    """``POST /repositories/{slug}/pull-requests/{pull_request_id}/commits``."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_post(
        self, req: Request, resp: Response, slug: str, pull_request_id: int
    ) -> None:
        """Link recorded commits to the pull request."""
        data = await read_input(req, LinkCommitsInput)
        view = await self._services.pull_requests.link_commits(
            actor_of(req), slug, pull_request_id, data
        )
        render(resp, view)
