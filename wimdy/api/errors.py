"""Falcon error handlers for Wimdy domain errors.

Each handler translates one branch of the domain error taxonomy into an
HTTP response. Anything not registered here propagates to Falcon and is
reported as a 500.

Usage
-----
Register the handlers on the Falcon app::

    from wimdy.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from wimdy.common.errors import NotFoundError, ValidationError
from wimdy.observability import DomainEventLogger
from wimdy.policy import AuthenticationRequiredError, PermissionDeniedError

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "handle_authentication_required",
    "handle_not_found",
    "handle_permission_denied",
    "handle_validation_error",
    "register_error_handlers",
]

_events = DomainEventLogger()


async def handle_validation_error(
    _req: Request,
    resp: Response,
    ex: ValidationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ValidationError`` and its subclasses to HTTP 422.

    The body groups every failure reason by field::

        {"title": "Invalid input", "errors": {"title": ["title is required"]}}

    """
    resp.status = falcon.HTTP_422
    resp.media = {"title": "Invalid input", "errors": ex.by_field()}


async def handle_authentication_required(
    _req: Request,
    resp: Response,
    _ex: AuthenticationRequiredError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``AuthenticationRequiredError`` to HTTP 401."""
    resp.status = falcon.HTTP_401
    resp.media = {"title": "Authentication required"}


async def handle_permission_denied(
    req: Request,
    resp: Response,
    ex: PermissionDeniedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``PermissionDeniedError`` to HTTP 403 and log the refusal.

    Parameters
    ----------
    req
        Falcon request; its actor and path are logged.
    resp
        Falcon response whose status and media are set.
    ex
        The denial naming the refused operation.
    _params
        URI template parameters (unused).

    """
    actor = getattr(req.context, "actor", None)
    _events.log_access_denied(
        operation=ex.operation,
        actor_id=None if actor is None else actor.user_id,
        path=req.path,
    )
    resp.status = falcon.HTTP_403
    resp.media = {"title": "Unauthorized"}


async def handle_not_found(
    _req: Request,
    resp: Response,
    _ex: NotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``NotFoundError`` to HTTP 404 without naming the entity."""
    resp.status = falcon.HTTP_404
    resp.media = {"title": "Not found"}


def register_error_handlers(app: App) -> None:
    """Install every domain error handler on ``app``."""
    app.add_error_handler(ValidationError, handle_validation_error)
    app.add_error_handler(AuthenticationRequiredError, handle_authentication_required)
    app.add_error_handler(PermissionDeniedError, handle_permission_denied)
    app.add_error_handler(NotFoundError, handle_not_found)
