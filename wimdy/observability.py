"""Structured domain events emitted by the Wimdy services.

Each event is one INFO (or WARNING) line of the form
``[wimdy.issue.status_changed] issue_id=7 previous=open current=closed``.

Usage
-----
>>> events = DomainEventLogger()
>>> events.log_repository_created(slug="demo-4821", owner_id=1, is_private=False)

"""

from __future__ import annotations

import enum

from wimdy.logging import format_fields, get_logger, log_info, log_warning

logger = get_logger(__name__)


class DomainEventType(enum.StrEnum):
    """Structured log event types for entity lifecycle changes."""

    REPOSITORY_CREATED = "wimdy.repository.created"
    REPOSITORY_DELETED = "wimdy.repository.deleted"
    ISSUE_STATUS_CHANGED = "wimdy.issue.status_changed"
    PULL_REQUEST_STATUS_CHANGED = "wimdy.pull_request.status_changed"
    ACCESS_DENIED = "wimdy.access.denied"


class DomainEventLogger:
    """Emit structured domain events via femtologging."""

    def _emit(self, event: DomainEventType, **fields: object) -> None:
        log_info(logger, "[%s] %s", event, format_fields(fields))

    def log_repository_created(
        self, *, slug: str, owner_id: int, is_private: bool
    ) -> None:
        """Log creation of a repository."""
        self._emit(
            DomainEventType.REPOSITORY_CREATED,
            slug=slug,
            owner_id=owner_id,
            is_private=is_private,
        )

    def log_repository_deleted(self, *, slug: str, actor_id: int) -> None:
        """Log deletion of a repository and its children."""
        self._emit(DomainEventType.REPOSITORY_DELETED, slug=slug, actor_id=actor_id)

    def log_issue_status_changed(
        self, *, issue_id: int, previous: str, current: str, actor_id: int
    ) -> None:
        """Log an issue transition."""
        self._emit(
            DomainEventType.ISSUE_STATUS_CHANGED,
            issue_id=issue_id,
            previous=previous,
            current=current,
            actor_id=actor_id,
        )

    def log_pull_request_status_changed(
        self, *, pull_request_id: int, previous: str, current: str, actor_id: int
    ) -> None:
        """Log a pull request transition."""
        self._emit(
            DomainEventType.PULL_REQUEST_STATUS_CHANGED,
            pull_request_id=pull_request_id,
            previous=previous,
            current=current,
            actor_id=actor_id,
        )

    def log_access_denied(
        self, *, operation: str, actor_id: int | None, path: str
    ) -> None:
        """Log a rejected mutation at WARNING level."""
        log_warning(
            logger,
            "[%s] %s",
            DomainEventType.ACCESS_DENIED,
            format_fields({"operation": operation, "actor_id": actor_id, "path": path}),
        )
