"""Closed status and priority enumerations for issues and pull requests."""

from __future__ import annotations

import enum


class IssueStatus(enum.StrEnum):
    """Lifecycle states of an issue."""

    OPEN = "open"
    CLOSED = "closed"


class IssuePriority(enum.StrEnum):
    """Triage priority attached to an issue."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PullRequestStatus(enum.StrEnum):
    """Lifecycle states of a pull request.

    ``MERGED`` is terminal.
    """

    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"
