"""Factory assembling the domain services behind the HTTP surface.

Usage
-----
Build the services for the API layer::

    from wimdy.api.factory import build_services

    services = build_services(session_factory, WimdyConfig.from_env())

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from wimdy.aggregation import FeedService
from wimdy.commits import CommitService
from wimdy.issues import IssueService
from wimdy.observability import DomainEventLogger
from wimdy.pulls import PullRequestService
from wimdy.repositories import RepositoryService

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from wimdy.config import WimdyConfig

__all__ = ["Services", "build_services"]


@dc.dataclass(frozen=True, slots=True)
class Services:
    """Domain services shared by every API resource.

    Attributes
    ----------
    config
        Page sizes used when a resource builds its page request.

    """

    config: WimdyConfig
    repositories: RepositoryService
    issues: IssueService
    pull_requests: PullRequestService
    commits: CommitService
    feeds: FeedService


def build_services(
    session_factory: async_sessionmaker[AsyncSession],
    config: WimdyConfig,
) -> Services:
    """Build every domain service over one session factory and event logger."""
    events = DomainEventLogger()
    return Services(
        config=config,
        repositories=RepositoryService(session_factory, config=config, events=events),
        issues=IssueService(session_factory, config=config, events=events),
        pull_requests=PullRequestService(
            session_factory, config=config, events=events
        ),
        commits=CommitService(session_factory, config=config),
        feeds=FeedService(session_factory),
    )
