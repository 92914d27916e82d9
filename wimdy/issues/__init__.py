"""Issue CRUD driven through the issue lifecycle."""

from __future__ import annotations

from .models import CreateIssueInput, UpdateIssueInput
from .service import IssueService

__all__ = ["CreateIssueInput", "IssueService", "UpdateIssueInput"]
