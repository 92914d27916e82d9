"""Commit resources nested under a repository."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from wimdy.api.rendering import actor_of, page_request, read_input, render
from wimdy.commits import RecordCommitInput

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from wimdy.api.factory import Services

__all__ = ["CommitCollectionResource"]


class CommitCollectionResource:
    """``GET|POST /repositories/{slug}/commits``."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, req: Request, resp: Response, slug: str) -> None:
        """Render one page of commits, optionally for a single ``?branch=``."""
        page = page_request(req, self._services.config.commits_per_page)
        render(
            resp,
            await self._services.commits.list_commits(
                actor_of(req), slug, page, branch=req.get_param("branch")
            ),
        )

    async def on_post(self, req: Request, resp: Response, slug: str) -> None:
        """Record a commit pushed by the repository owner."""
        data = await read_input(req, RecordCommitInput)
        view = await self._services.commits.record_commit(actor_of(req), slug, data)
        render(resp, view, HTTPStatus.CREATED)
