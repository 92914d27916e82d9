"""Offset pagination helpers.

Listing endpoints accept a one-based ``page`` number and a fixed page size
from :class:`wimdy.config.WimdyConfig`. Queries apply filters and ordering
first; the offset and limit computed here are appended last.

Example:
-------
Page through public repositories twelve at a time::

    request = PageRequest(page=2, per_page=12)
    query = apply_page(select(Repository).order_by(...), request)

"""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec
from sqlalchemy import Select, func, select

from wimdy.common.errors import FieldIssue, ValidationError
from wimdy.common.validation import MAX_SQL_INTEGER

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

T = typ.TypeVar("T")


class InvalidPaginationError(ValidationError):
    """Raised when pagination parameters are not positive or too large."""

    def __init__(self, name: str, message: str | None = None) -> None:
        """Build a consistent error message for the invalid parameter."""
        message = message or f"{name} must be a positive integer"
        super().__init__([FieldIssue(name, message)])


@dataclasses.dataclass(frozen=True, slots=True)
class PageRequest:
    """Requested page of an ordered listing.

    Attributes
    ----------
    page
        One-based page number.
    per_page
        Maximum number of rows on the page.

    """

    page: int = 1
    per_page: int = 20

    def __post_init__(self) -> None:
        """Reject zero or negative values and offsets SQL cannot hold."""
        if self.page < 1:
            raise InvalidPaginationError("page")
        if self.per_page < 1:
            raise InvalidPaginationError("per_page")
        if self.per_page > MAX_SQL_INTEGER:
            raise InvalidPaginationError("per_page", "per_page is too large")
        if self.offset > MAX_SQL_INTEGER:
            raise InvalidPaginationError("page", "page is too large")

    @property
    def offset(self) -> int:
        """Return the number of ordered rows skipped before this page."""
        return (self.page - 1) * self.per_page

    @classmethod
    def from_query(cls, raw_page: str | None, per_page: int) -> PageRequest:
        """Build a request from the ``?page=`` query parameter."""
        if raw_page is None or not raw_page.strip():
            return cls(page=1, per_page=per_page)
        try:
            page = int(raw_page)
        except ValueError as exc:
            raise InvalidPaginationError("page") from exc
        return cls(page=page, per_page=per_page)


class Page(msgspec.Struct, typ.Generic[T], kw_only=True):
    """One page of view-models plus the totals needed to render pagers."""

    items: list[T]
    page: int
    per_page: int
    total: int


def apply_page(query: Select, request: PageRequest) -> Select:
    """Append offset and limit to an already filtered and ordered query."""
    return query.offset(request.offset).limit(request.per_page)


async def count_rows(session: AsyncSession, query: Select) -> int:
    """Count the rows ``query`` would return, ignoring its ordering."""
    counted = select(func.count()).select_from(query.order_by(None).subquery())
    return int(await session.scalar(counted) or 0)
