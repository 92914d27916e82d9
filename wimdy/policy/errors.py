"""Authorization errors."""

from __future__ import annotations

from wimdy.common.errors import WimdyError


class AuthenticationRequiredError(WimdyError):
    """Raised when an anonymous actor attempts an authenticated operation."""

    def __init__(self, operation: str) -> None:
        """Record the operation that required a signed-in actor."""
        self.operation = operation
        super().__init__(f"authentication required to {operation}")


class PermissionDeniedError(WimdyError):
    """Raised when a visible entity may not be mutated by the actor.

    Distinct from :class:`~wimdy.common.errors.NotFoundError`: the actor can
    see the entity but lacks write access to it.
    """

    def __init__(self, operation: str) -> None:
        """Record the denied operation."""
        self.operation = operation
        super().__init__(f"not permitted to {operation}")
