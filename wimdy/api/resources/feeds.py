"""Home and dashboard feed resources."""

from __future__ import annotations

import typing as typ

from wimdy.api.rendering import actor_of, render

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from wimdy.api.factory import Services

__all__ = ["DashboardResource", "HomeResource"]


class HomeResource:
    """``GET /``: the public home feed."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Render trending repositories, recent activity and counters."""
        render(resp, await self._services.feeds.home())


class DashboardResource:
    """``GET /dashboard``: the signed-in user's dashboard (401 when anonymous)."""

    def __init__(self, services: Services) -> None:
        """Store the shared services."""
        self._services = services

    async def on_get(self, req: Request, resp: Response) -> None:
        """Render the actor's dashboard."""
        render(resp, await self._services.feeds.dashboard(actor_of(req)))
