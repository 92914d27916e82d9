"""Request parsing and response rendering shared by the API resources."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon
import msgspec

from wimdy.common.errors import ValidationError
from wimdy.common.pagination import PageRequest
from wimdy.common.validation import decode_input
from wimdy.policy import Actor

if typ.TYPE_CHECKING:
    import enum

    from falcon.asgi import Request, Response

__all__ = [
    "actor_of",
    "enum_param",
    "page_request",
    "read_input",
    "render",
    "render_empty",
]


def actor_of(req: Request) -> Actor:
    """Return the actor stored by the identity middleware."""
    return getattr(req.context, "actor", None) or Actor.anonymous()


async def read_input[T](req: Request, input_type: type[T]) -> T:
    """Decode the JSON request body into ``input_type``."""
    raw = await req.stream.read()
    return decode_input(raw, input_type)


def page_request(req: Request, per_page: int) -> PageRequest:
    """Build the page request selected by ``?page=``."""
    return PageRequest.from_query(req.get_param("page"), per_page)


def enum_param[E: enum.StrEnum](
    req: Request, name: str, enum_cls: type[E]
) -> E | None:
    """Parse an optional enum query parameter such as ``?status=open``."""
    raw = req.get_param(name)
    if raw is None or not raw.strip():
        return None
    try:
        return enum_cls(raw.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError.for_field(name, f"must be one of: {allowed}") from exc


def render(resp: Response, view: object, status: HTTPStatus = HTTPStatus.OK) -> None:
    """Serialise a view-model as the JSON response body."""
    resp.data = msgspec.json.encode(view)
    resp.content_type = falcon.MEDIA_JSON
    resp.status = status


def render_empty(resp: Response) -> None:
    """Answer with 204 and no body."""
    resp.status = HTTPStatus.NO_CONTENT
