"""Actor model and visibility/authorization policy."""

from __future__ import annotations

from .access import (
    AccessLevel,
    can_create_child,
    can_merge_pull_request,
    child_access,
    ensure_child_creatable,
    ensure_child_writable,
    ensure_readable,
    ensure_repository_writable,
    public_repositories,
    repository_access,
    visible_repositories,
)
from .actor import Actor
from .errors import AuthenticationRequiredError, PermissionDeniedError

__all__ = [
    "AccessLevel",
    "Actor",
    "AuthenticationRequiredError",
    "PermissionDeniedError",
    "can_create_child",
    "can_merge_pull_request",
    "child_access",
    "ensure_child_creatable",
    "ensure_child_writable",
    "ensure_readable",
    "ensure_repository_writable",
    "public_repositories",
    "repository_access",
    "visible_repositories",
]
