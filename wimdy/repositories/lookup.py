"""Repository and acting-user lookups shared by the entity services."""

from __future__ import annotations

import typing as typ

from sqlalchemy import select

from wimdy.common.errors import EntityKind, NotFoundError
from wimdy.mapping import REPOSITORY_VIEW_OPTIONS
from wimdy.policy import AuthenticationRequiredError, ensure_readable
from wimdy.store.storage import Repository, User

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from wimdy.policy import Actor


async def load_repository(session: AsyncSession, slug: str) -> Repository:
    """Return the repository with ``slug`` and its owner loaded.

    Raises
    ------
    NotFoundError
        If no repository has the slug.

    """
    repo = await session.scalar(
        select(Repository)
        .where(Repository.slug == slug)
        .options(*REPOSITORY_VIEW_OPTIONS)
    )
    if repo is None:
        raise NotFoundError(EntityKind.REPOSITORY, slug)
    return repo


async def load_readable_repository(
    session: AsyncSession, actor: Actor, slug: str
) -> Repository:
    """Return the repository with ``slug`` when ``actor`` may read it.

    A private repository hidden from the actor raises the same
    :class:`NotFoundError` as a missing slug.
    """
    repo = await load_repository(session, slug)
    ensure_readable(actor, repo, slug)
    return repo


async def load_acting_user(
    session: AsyncSession, actor: Actor, operation: str
) -> User:
    """Return the user row behind an authenticated actor.

    Raises
    ------
    AuthenticationRequiredError
        If the actor is anonymous or names a user that does not exist.

    """
    user_id = actor.require_user_id(operation)
    user = await session.get(User, user_id)
    if user is None:
        raise AuthenticationRequiredError(operation)
    return user
