"""Commit recording and listing."""

from __future__ import annotations

from .models import RecordCommitInput
from .service import CommitService

__all__ = ["CommitService", "RecordCommitInput"]
