"""Application factory for the Wimdy Falcon ASGI application.

This module provides ``create_app()`` which builds and configures the
Falcon ASGI application with the health endpoint and, when a session
factory is available, the repository, issue, pull request, commit and
feed endpoints.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with domain endpoints::

    from wimdy.api.app import AppDependencies, create_app

    deps = AppDependencies(session_factory=session_factory)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from wimdy.api.errors import register_error_handlers
from wimdy.api.health.resources import HealthCheckResource
from wimdy.api.identity import HeaderIdentityProvider, IdentityMiddleware
from wimdy.common.validation import MAX_SQL_INTEGER
from wimdy.config import WimdyConfig

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.api.identity import IdentityProvider

__all__ = ["AppDependencies", "create_app"]

# Path ids must fit a signed 64-bit column.
_ROW_ID = f"int(min=1, max={MAX_SQL_INTEGER})"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    When ``session_factory`` is provided the application includes the
    domain endpoints. Otherwise only ``/health-check`` is registered.

    Attributes
    ----------
    session_factory
        Async session factory for database access.
    config
        Page sizes, slug retries and the identity header. Defaults to
        :class:`WimdyConfig`.
    identity_provider
        Resolves the actor of each request. Defaults to a
        :class:`HeaderIdentityProvider` reading ``config.identity_header``.

    """

    session_factory: async_sessionmaker[AsyncSession] | None = None
    config: WimdyConfig | None = None
    identity_provider: IdentityProvider | None = None


def _add_domain_routes(
    app: falcon.asgi.App,
    session_factory: async_sessionmaker[AsyncSession],
    config: WimdyConfig,
) -> None:
    from wimdy.api.factory import build_services
    from wimdy.api.resources import (
        CommitCollectionResource,
        DashboardResource,
        HomeResource,
        IssueCollectionResource,
        IssueResource,
        PullRequestCollectionResource,
        PullRequestCommitsResource,
        PullRequestResource,
        RepositoryCollectionResource,
        RepositoryResource,
    )

    services = build_services(session_factory, config)
    repo = "/repositories/{slug}"
    pull = f"{repo}/pull-requests/{{pull_request_id:{_ROW_ID}}}"

    app.add_route("/", HomeResource(services))
    app.add_route("/dashboard", DashboardResource(services))
    app.add_route("/repositories", RepositoryCollectionResource(services))
    app.add_route(repo, RepositoryResource(services))
    app.add_route(f"{repo}/issues", IssueCollectionResource(services))
    app.add_route(f"{repo}/issues/{{issue_id:{_ROW_ID}}}", IssueResource(services))
    app.add_route(f"{repo}/pull-requests", PullRequestCollectionResource(services))
    app.add_route(pull, PullRequestResource(services))
    app.add_route(f"{pull}/commits", PullRequestCommitsResource(services))
    app.add_route(f"{repo}/commits", CommitCollectionResource(services))


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or lacking a
        session factory, only the health endpoint is available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    deps = dependencies or AppDependencies()
    config = deps.config or WimdyConfig()
    provider = deps.identity_provider or HeaderIdentityProvider(
        config.identity_header
    )

    app = falcon.asgi.App(middleware=[IdentityMiddleware(provider)])  # type: ignore[no-matching-overload]  # Falcon stubs

    # The health endpoint is always available
    app.add_route("/health-check", HealthCheckResource())

    if deps.session_factory is not None:
        _add_domain_routes(app, deps.session_factory, config)

    register_error_handlers(app)
    return app
