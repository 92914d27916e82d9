"""Entity store: SQLAlchemy models and schema management."""

from __future__ import annotations

from .engine import create_engine, create_session_factory
from .errors import TimezoneAwareRequiredError
from .storage import (
    Base,
    Commit,
    Issue,
    LabelSet,
    PullRequest,
    PullRequestCommit,
    Repository,
    User,
    UTCDateTime,
    init_storage,
)

__all__ = [
    "Base",
    "Commit",
    "Issue",
    "LabelSet",
    "PullRequest",
    "PullRequestCommit",
    "Repository",
    "TimezoneAwareRequiredError",
    "UTCDateTime",
    "User",
    "create_engine",
    "create_session_factory",
    "init_storage",
]
