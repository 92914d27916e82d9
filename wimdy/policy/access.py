"""Visibility and authorization rules.

Rules
-----
- A repository is readable by anyone when public and only by its owner
  when private. Only the owner may update or delete it.
- Issues and pull requests inherit the read visibility of their repository.
- Any signed-in actor who can read a repository may file issues and pull
  requests against it.
- An issue or pull request may be edited or deleted by its author and by
  the owner of its repository. Assignees gain no edit rights.
- Any signed-in actor who can read a repository may merge one of its open
  pull requests, provided the merge changes nothing else.

Hidden repositories surface as :class:`~wimdy.common.errors.NotFoundError`
so that a private repository is indistinguishable from a missing one.
Visible but read-only targets surface as
:class:`~wimdy.policy.errors.PermissionDeniedError`.
"""

from __future__ import annotations

import enum
import typing as typ

from sqlalchemy import or_

from wimdy.common.errors import EntityKind, NotFoundError
from wimdy.policy.errors import AuthenticationRequiredError, PermissionDeniedError
from wimdy.store.storage import Repository

if typ.TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

    from wimdy.policy.actor import Actor


class AccessLevel(enum.IntEnum):
    """Outcome of an access decision, ordered from least to most access."""

    DENY = 0
    READ = 1
    READ_WRITE = 2

    @property
    def can_read(self) -> bool:
        """Return whether the level grants read access."""
        return self >= AccessLevel.READ

    @property
    def can_write(self) -> bool:
        """Return whether the level grants write access."""
        return self is AccessLevel.READ_WRITE


class OwnedRepository(typ.Protocol):
    """Repository attributes consulted by the policy."""

    user_id: int
    is_private: bool


def repository_access(actor: Actor, repo: OwnedRepository) -> AccessLevel:
    """Decide the actor's access to a repository."""
    if actor.is_user(repo.user_id):
        return AccessLevel.READ_WRITE
    if not repo.is_private:
        return AccessLevel.READ
    return AccessLevel.DENY


def child_access(
    actor: Actor, repo: OwnedRepository, author_id: int | None
) -> AccessLevel:
    """Decide the actor's access to an issue or pull request.

    Parameters
    ----------
    actor
        Actor performing the operation.
    repo
        Repository that owns the issue or pull request.
    author_id
        Author of the issue or pull request.

    """
    if not repository_access(actor, repo).can_read:
        return AccessLevel.DENY
    if actor.is_user(author_id) or actor.is_user(repo.user_id):
        return AccessLevel.READ_WRITE
    return AccessLevel.READ


def can_create_child(actor: Actor, repo: OwnedRepository) -> bool:
    """Return whether the actor may file an issue or pull request."""
    return actor.is_authenticated and repository_access(actor, repo).can_read



def can_merge_pull_request(actor: Actor, repo: OwnedRepository) -> bool:
    """Return whether the actor may merge an open pull request of ``repo``.

    Merging is open to every signed-in reader, unlike other pull request
    edits which stay with the author and the repository owner.
    """
    return can_create_child(actor, repo)


def visible_repositories(actor: Actor) -> ColumnElement[bool]:
    """Return the grouped SQL predicate selecting repositories ``actor`` can see.

    The disjunction is wrapped in its own group so that conjoining it with
    other filters can never widen the result set.
    """
    public = Repository.is_private.is_(False)
    if actor.user_id is None:
        return public
    return or_(public, Repository.user_id == actor.user_id).self_group()


def public_repositories() -> ColumnElement[bool]:
    """Return the SQL predicate selecting public repositories."""
    return Repository.is_private.is_(False)


def ensure_readable(actor: Actor, repo: OwnedRepository, slug: str) -> None:
    """Raise :class:`NotFoundError` unless the actor can read ``repo``."""
    if not repository_access(actor, repo).can_read:
        raise NotFoundError(EntityKind.REPOSITORY, slug)


def ensure_repository_writable(
    actor: Actor, repo: OwnedRepository, slug: str, operation: str
) -> None:
    """Raise unless the actor owns ``repo``.

    Raises
    ------
    NotFoundError
        If the repository is hidden from the actor.
    PermissionDeniedError
        If the repository is visible but owned by someone else.

    """
    level = repository_access(actor, repo)
    if not level.can_read:
        raise NotFoundError(EntityKind.REPOSITORY, slug)
    if not level.can_write:
        raise PermissionDeniedError(operation)


def ensure_child_writable(
    actor: Actor,
    repo: OwnedRepository,
    author_id: int | None,
    operation: str,
) -> None:
    """Raise unless the actor may edit an issue or pull request of ``repo``."""
    level = child_access(actor, repo, author_id)
    if not level.can_read:
        raise NotFoundError(EntityKind.REPOSITORY, operation)
    if not level.can_write:
        raise PermissionDeniedError(operation)


def ensure_child_creatable(
    actor: Actor, repo: OwnedRepository, slug: str, operation: str
) -> None:
    """Raise unless the actor may file an issue or pull request on ``repo``.

    Raises
    ------
    AuthenticationRequiredError
        If the actor is anonymous.
    NotFoundError
        If the repository is hidden from the actor.

    """
    if can_create_child(actor, repo):
        return
    if not actor.is_authenticated:
        raise AuthenticationRequiredError(operation)
    raise NotFoundError(EntityKind.REPOSITORY, slug)
