"""Typed inputs for issue write operations."""

from __future__ import annotations

import msgspec

from wimdy.common.validation import Label, RowId, ShortText
from wimdy.lifecycle.states import IssuePriority, IssueStatus


class CreateIssueInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Attributes a user supplies when filing an issue.

    Status is not accepted: every issue starts open.
    """

    title: ShortText
    description: str | None = None
    priority: IssuePriority = IssuePriority.MEDIUM
    labels: frozenset[Label] = msgspec.field(default_factory=frozenset)
    assignee_id: RowId | None = None


class UpdateIssueInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Full editable attribute set of an issue, including its status."""

    title: ShortText
    status: IssueStatus
    description: str | None = None
    priority: IssuePriority = IssuePriority.MEDIUM
    labels: frozenset[Label] = msgspec.field(default_factory=frozenset)
    assignee_id: RowId | None = None
