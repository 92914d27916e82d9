"""Domain resources registered when the app has a database."""

from __future__ import annotations

from .commits import CommitCollectionResource
from .feeds import DashboardResource, HomeResource
from .issues import IssueCollectionResource, IssueResource
from .pulls import (
    PullRequestCollectionResource,
    PullRequestCommitsResource,
    PullRequestResource,
)
from .repositories import RepositoryCollectionResource, RepositoryResource

__all__ = [
    "CommitCollectionResource",
    "DashboardResource",
    "HomeResource",
    "IssueCollectionResource",
    "IssueResource",
    "PullRequestCollectionResource",
    "PullRequestCommitsResource",
    "PullRequestResource",
    "RepositoryCollectionResource",
    "RepositoryResource",
]
