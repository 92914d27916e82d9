"""Actor identification for incoming requests.

Wimdy does not authenticate anyone itself. A trusted upstream session layer
asserts the signed-in user in a request header and
:class:`IdentityMiddleware` turns that assertion into an
:class:`~wimdy.policy.Actor` stored on ``req.context.actor``.

Usage
-----
Register the middleware when creating the Falcon app::

    provider = HeaderIdentityProvider("X-Wimdy-User-Id")
    app = falcon.asgi.App(middleware=[IdentityMiddleware(provider)])

"""

from __future__ import annotations

import typing as typ

from wimdy.common.validation import MAX_SQL_INTEGER
from wimdy.config import DEFAULT_IDENTITY_HEADER
from wimdy.logging import get_logger, log_warning
from wimdy.policy import Actor

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HeaderIdentityProvider", "IdentityMiddleware", "IdentityProvider"]

logger = get_logger(__name__)


class IdentityProvider(typ.Protocol):
    """Resolves the actor behind a request."""

    def identify(self, req: Request) -> Actor:
        """Return the actor for ``req``; anonymous when nobody is signed in."""
        ...


class HeaderIdentityProvider:
    """Read the signed-in user id from a trusted request header.

    Missing headers yield the anonymous actor. Values that are not positive
    integers, or that no SQL integer column could hold, are logged and also
    treated as anonymous.
    """

    def __init__(self, header: str = DEFAULT_IDENTITY_HEADER) -> None:
        """Configure the header carrying the user id."""
        self._header = header

    def identify(self, req: Request) -> Actor:
        """Return the actor asserted by the identity header."""
        raw = req.get_header(self._header)
        if raw is None or not raw.strip():
            return Actor.anonymous()
        try:
            user_id = int(raw)
        except ValueError:
            user_id = 0
        if not 1 <= user_id <= MAX_SQL_INTEGER:
            log_warning(
                logger,
                "Ignoring malformed %s header %r; treating request as anonymous",
                self._header,
                raw,
            )
            return Actor.anonymous()
        return Actor.for_user(user_id)


class IdentityMiddleware:
    """Falcon middleware attaching the request actor to ``req.context``.

    Parameters
    ----------
    provider
        Strategy used to resolve the actor of each request.

    """

    def __init__(self, provider: IdentityProvider) -> None:
        """Initialize the middleware with an identity provider."""
        self._provider = provider

    async def process_request(self, req: Request, _resp: Response) -> None:
        """Store the resolved actor on ``req.context.actor``."""
        req.context.actor = self._provider.identify(req)
