"""Typed inputs for repository write operations."""

from __future__ import annotations

import typing as typ

import msgspec

from wimdy.common.validation import ShortText

Language = typ.Annotated[str, msgspec.Meta(max_length=100)]
DefaultBranch = typ.Annotated[str, msgspec.Meta(max_length=100)]


class CreateRepositoryInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Attributes a user supplies when creating a repository.

    The slug, owner and star/fork counters are assigned by the service and
    cannot be set here.
    """

    name: ShortText
    description: str | None = None
    is_private: bool = False
    is_fork: bool = False
    language: Language | None = None
    default_branch: DefaultBranch = "main"


class UpdateRepositoryInput(
    msgspec.Struct, kw_only=True, frozen=True, forbid_unknown_fields=True
):
    """Full editable attribute set of a repository.

    Renaming a repository leaves its slug untouched.
    """

    name: ShortText
    default_branch: DefaultBranch
    description: str | None = None
    is_private: bool = False
    language: Language | None = None
