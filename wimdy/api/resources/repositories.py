"""Repository collection and item resources.

Routes
------
``GET /repositories``
    Public repositories plus the actor's private ones, newest first.
``POST /repositories``
    Create a repository owned by the actor (201).
``GET|PUT|DELETE /repositories/{slug}``
    Show, replace or delete one repository.

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from wimdy.api.rendering import (
    actor_of,
    page_request,
    read_input,
    render,
    render_empty,
)
from wimdy.repositories import CreateRepositoryInput, UpdateRepositoryInput

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from wimdy.api.factory import Services

__all__ = ["RepositoryCollectionResource", "RepositoryResource"]


class RepositoryCollectionResource:
    """List and create repositories."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, req: Request, resp: Response) -> None:
        """Render one page of visible repositories."""
        page = page_request(req, self._services.config.repositories_per_page)
        render(
            resp,
            await self._services.repositories.list_repositories(actor_of(req), page),
        )

    async def on_post(self, req: Request, resp: Response) -> None:
        """Create a repository from the JSON body."""
        data = await read_input(req, CreateRepositoryInput)
        view = await self._services.repositories.create_repository(
            actor_of(req), data
        )
        render(resp, view, HTTPStatus.CREATED)


class RepositoryResource:
    """Show, update and delete one repository."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, req: Request, resp: Response, slug: str) -> None:
        """Render the repository detail with counters and recent commits."""
        render(
            resp, await self._services.repositories.get_repository(actor_of(req), slug)
        )

    async def on_put(self, req: Request, resp: Response, slug: str) -> None:
        """Replace the repository's editable attributes."""
        data = await read_input(req, UpdateRepositoryInput)
        view = await self._services.repositories.update_repository(
            actor_of(req), slug, data
        )
        render(resp, view)

    async def on_delete(self, req: Request, resp: Response, slug: str) -> None:
        """Delete the repository and everything it owns."""
        await self._services.repositories.delete_repository(actor_of(req), slug)
        render_empty(resp)
