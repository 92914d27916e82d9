"""Typed inputs for pull request write operations."""

from __future__ import annotations

import typing as typ

import msgspec

from wimdy.common.validation import BranchName, ShortText
from wimdy.lifecycle.states import PullRequestStatus

CommitHash = typ.Annotated[str, msgspec.Meta(pattern="^[0-9a-f]{7,64}$")]


class CreatePullRequestInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Attributes a user supplies when opening a pull request.

    Status and the merge fields are assigned by the lifecycle.
    """

    title: ShortText
    source_branch: BranchName
    target_branch: BranchName
    description: str | None = None
    is_draft: bool = False


class UpdatePullRequestInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Full editable attribute set of a pull request, including its status."""

    title: ShortText
    source_branch: BranchName
    target_branch: BranchName
    status: PullRequestStatus
    description: str | None = None
    is_draft: bool = False


class LinkCommitsInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Hashes of recorded commits to associate with a pull request."""

    hashes: typ.Annotated[list[CommitHash], msgspec.Meta(min_length=1)]
