"""Health check resource.

The resource is stateless and needs no database access. It is registered
even when the app runs without a database.

Usage
-----
Register the endpoint on the Falcon app::

    from wimdy.api.health.resources import HealthCheckResource

    app.add_route("/health-check", HealthCheckResource())

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from wimdy.common.time import utcnow

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthCheckResource"]


class HealthCheckResource:
    """Liveness resource returning ``{"status": "ok", "timestamp": ...}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health-check requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with the status and current UTC time.

        """
        resp.media = {"status": "ok", "timestamp": utcnow().isoformat()}
        resp.status = HTTPStatus.OK
