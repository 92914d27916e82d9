"""Read-only aggregation: repository counters and activity feeds."""

from __future__ import annotations

from .counts import repository_counts
from .feeds import (
    DASHBOARD_COMMITS,
    DASHBOARD_ISSUES,
    DASHBOARD_PULL_REQUESTS,
    DASHBOARD_REPOSITORIES,
    HOME_COMMITS,
    HOME_ISSUES,
    HOME_PULL_REQUESTS,
    HOME_REPOSITORIES,
    FeedService,
)

__all__ = [
    "DASHBOARD_COMMITS",
    "DASHBOARD_ISSUES",
    "DASHBOARD_PULL_REQUESTS",
    "DASHBOARD_REPOSITORIES",
    "HOME_COMMITS",
    "HOME_ISSUES",
    "HOME_PULL_REQUESTS",
    "HOME_REPOSITORIES",
    "FeedService",
    "repository_counts",
]
