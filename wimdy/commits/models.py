"""Typed inputs for commit recording."""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import typing as typ

import msgspec

from wimdy.common.validation import MAX_SQL_INTEGER, BranchName
from wimdy.pulls.models import CommitHash

NonNegative = typ.Annotated[int, msgspec.Meta(ge=0, le=MAX_SQL_INTEGER)]
AwareDateTime = typ.Annotated[dt.datetime, msgspec.Meta(tz=True)]


class RecordCommitInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """A commit pushed to a repository.

    The author name and email are snapshotted from the pushing user. When
    ``committed_at`` is omitted the recording time is used.
    """

    hash: CommitHash
    message: str
    branch: BranchName
    files_changed: NonNegative = 0
    additions: NonNegative = 0
    deletions: NonNegative = 0
    committed_at: AwareDateTime | None = None
