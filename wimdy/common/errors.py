"""Error taxonomy shared by every Wimdy service.

Services raise these exceptions; :mod:`wimdy.api.errors` maps them to HTTP
responses. None of them are retried: each failed request is reported on its
own and the process carries on.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ


class EntityKind(enum.StrEnum):
    """Entity names used in not-found and conflict messages."""

    REPOSITORY = "repository"
    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    COMMIT = "commit"
    USER = "user"


class WimdyError(Exception):
    """Base class for domain errors surfaced to callers."""


@dataclasses.dataclass(frozen=True, slots=True)
class FieldIssue:
    """One validation failure attached to an input field."""

    field: str
    reason: str


class ValidationError(WimdyError):
    """Raised when input is malformed or breaks a domain rule.

    The request is rejected as a whole; nothing is written.

    Attributes
    ----------
    issues
        Every field-level failure detected for the request.

    """

    def __init__(self, issues: typ.Sequence[FieldIssue]) -> None:
        """Capture the issues whilst keeping an aggregated message."""
        self.issues = tuple(issues)
        super().__init__(
            "; ".join(f"{issue.field}: {issue.reason}" for issue in self.issues)
        )

    @classmethod
    def for_field(cls, field: str, reason: str) -> typ.Self:
        """Build an error carrying a single field issue."""
        return cls([FieldIssue(field, reason)])

    def by_field(self) -> dict[str, list[str]]:
        """Group issue reasons by field name, preserving order."""
        grouped: dict[str, list[str]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.field, []).append(issue.reason)
        return grouped


class UniquenessConflictError(ValidationError):
    """Raised when a unique value such as a slug or commit hash collides."""

    def __init__(self, field: str, value: str) -> None:
        """Record the colliding field and value."""
        self.field = field
        self.value = value
        super().__init__([FieldIssue(field, f"{value!r} is already taken")])


class NotFoundError(WimdyError):
    """Raised when an entity does not exist or is hidden from the actor.

    The message deliberately names only the entity kind so that a private
    repository and a missing one are indistinguishable to the caller.
    """

    def __init__(self, kind: EntityKind, key: object) -> None:
        """Record the missing entity kind and lookup key."""
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found")
