"""Pull request CRUD, merge bookkeeping and commit association."""

from __future__ import annotations

from .models import (
    CommitHash,
    CreatePullRequestInput,
    LinkCommitsInput,
    UpdatePullRequestInput,
)
from .service import PullRequestService

__all__ = [
    "CommitHash",
    "CreatePullRequestInput",
    "LinkCommitsInput",
    "PullRequestService",
    "UpdatePullRequestInput",
]
