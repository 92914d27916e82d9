"""The actor performing an operation.

Services never look up the current user from ambient state; callers pass an
:class:`Actor` explicitly, which keeps every policy decision a pure function
of its arguments.
"""

from __future__ import annotations

import dataclasses

from wimdy.policy.errors import AuthenticationRequiredError


@dataclasses.dataclass(frozen=True, slots=True)
class Actor:
    """An authenticated user or an anonymous visitor.

    Attributes
    ----------
    user_id
        Identifier of the signed-in user, or ``None`` for a visitor.

    """

    user_id: int | None = None

    @classmethod
    def anonymous(cls) -> Actor:
        """Return the anonymous visitor."""
        return cls(user_id=None)

    @classmethod
    def for_user(cls, user_id: int) -> Actor:
        """Return the actor for a signed-in user."""
        return cls(user_id=user_id)

    @property
    def is_authenticated(self) -> bool:
        """Return whether the actor is a signed-in user."""
        return self.user_id is not None

    def require_user_id(self, operation: str) -> int:
        """Return the user id, raising when the actor is anonymous.

        Raises
        ------
        AuthenticationRequiredError
            If the actor is anonymous.

        """
        if self.user_id is None:
            raise AuthenticationRequiredError(operation)
        return self.user_id

    def is_user(self, user_id: int | None) -> bool:
        """Return whether the actor is the given user."""
        return self.user_id is not None and self.user_id == user_id
