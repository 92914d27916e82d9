"""Issue and pull request lifecycle state machines."""

from __future__ import annotations

from .errors import InvalidTransitionError, LifecycleInvariantError
from .states import IssuePriority, IssueStatus, PullRequestStatus
from .transitions import (
    PULL_REQUEST_TRANSITIONS,
    Transition,
    check_issue_invariant,
    check_pull_request_invariant,
    transition_issue,
    transition_pull_request,
)

__all__ = [
    "PULL_REQUEST_TRANSITIONS",
    "InvalidTransitionError",
    "IssuePriority",
    "IssueStatus",
    "LifecycleInvariantError",
    "PullRequestStatus",
    "Transition",
    "check_issue_invariant",
    "check_pull_request_invariant",
    "transition_issue",
    "transition_pull_request",
]
