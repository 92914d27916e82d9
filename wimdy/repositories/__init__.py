"""Repository CRUD, slug assignment and listing.

Usage
-----
Create and list repositories::

    from wimdy.policy import Actor
    from wimdy.repositories import CreateRepositoryInput, RepositoryService

    service = RepositoryService(session_factory)
    repo = await service.create_repository(
        Actor.for_user(1), CreateRepositoryInput(name="demo")
    )
    page = await service.list_repositories(Actor.anonymous())

"""

from __future__ import annotations

from .lookup import load_acting_user, load_readable_repository, load_repository
from .models import CreateRepositoryInput, UpdateRepositoryInput
from .service import RepositoryService

__all__ = [
    "CreateRepositoryInput",
    "RepositoryService",
    "UpdateRepositoryInput",
    "load_acting_user",
    "load_readable_repository",
    "load_repository",
]
