"""Lifecycle error types."""

from __future__ import annotations

import enum

from wimdy.common.errors import FieldIssue, ValidationError


class InvalidTransitionError(ValidationError):
    """Raised when a requested status change is not a legal transition.

    Reported as a validation failure on the ``status`` field; the status is
    never silently coerced.
    """

    def __init__(self, current: enum.StrEnum, target: enum.StrEnum) -> None:
        """Record the rejected transition."""
        self.current = current
        self.target = target
        super().__init__(
            [FieldIssue("status", f"cannot change status from {current} to {target}")]
        )


class LifecycleInvariantError(RuntimeError):
    """Raised when stored lifecycle fields disagree with the status."""
