"""Decoding and field checks for typed operation inputs.

Each write operation declares an explicit ``msgspec.Struct`` input type.
Request bodies are decoded straight into that type so unknown keys are
rejected instead of silently assigned. ``msgspec`` reports the first
structural failure; the helpers here translate it into a
:class:`~wimdy.common.errors.ValidationError` naming the offending field.
"""

from __future__ import annotations

import re
import typing as typ

import msgspec

from wimdy.common.errors import FieldIssue, ValidationError

BODY_FIELD = "body"

_FIELD_PATH = re.compile(r"at `\$\.([A-Za-z_]\w*)")
_MISSING_FIELD = re.compile(r"missing required field `(\w+)`")
_UNKNOWN_FIELD = re.compile(r"unknown field `(\w+)`")


def _field_from_message(message: str) -> str:
    for pattern in (_FIELD_PATH, _MISSING_FIELD, _UNKNOWN_FIELD):
        match = pattern.search(message)
        if match is not None:
            return match.group(1)
    return BODY_FIELD


def decode_input[T](raw: bytes, input_type: type[T]) -> T:
    """Decode a JSON request body into ``input_type``.

    Raises
    ------
    ValidationError
        If the body is not valid JSON or does not match the input type.

    """
    try:
        return msgspec.json.decode(raw or b"{}", type=input_type)
    except msgspec.ValidationError as exc:
        message = str(exc)
        raise ValidationError.for_field(_field_from_message(message), message) from exc
    except msgspec.DecodeError as exc:
        raise ValidationError.for_field(BODY_FIELD, "malformed JSON") from exc


class FieldChecks:
    """Collects field issues so a request reports every failure at once."""

    def __init__(self) -> None:
        """Start with no recorded issues."""
        self.issues: list[FieldIssue] = []

    def fail(self, field: str, reason: str) -> None:
        """Record a failure against ``field``."""
        self.issues.append(FieldIssue(field, reason))

    def required_text(self, field: str, value: str) -> str:
        """Return ``value`` stripped, recording an issue when it is blank."""
        stripped = value.strip()
        if not stripped:
            self.fail(field, f"{field} is required")
        return stripped

    def optional_text(self, value: str | None) -> str | None:
        """Return ``value`` stripped, collapsing blanks to ``None``."""
        if value is None:
            return None
        return value.strip() or None

    def label_set(self, field: str, values: typ.Iterable[str]) -> frozenset[str]:
        """Return stripped labels, recording an issue for blank entries."""
        labels = {value.strip() for value in values}
        if "" in labels:
            self.fail(field, "labels must not be blank")
            labels.discard("")
        return frozenset(labels)

    def raise_if_failed(self) -> None:
        """Raise a :class:`ValidationError` when any check failed."""
        if self.issues:
            raise ValidationError(self.issues)


#: Largest value a signed 64-bit SQL integer column can store.
MAX_SQL_INTEGER = 2**63 - 1

RowId = typ.Annotated[int, msgspec.Meta(ge=1, le=MAX_SQL_INTEGER)]
ShortText = typ.Annotated[str, msgspec.Meta(max_length=255)]
BranchName = typ.Annotated[str, msgspec.Meta(max_length=255)]
Label = typ.Annotated[str, msgspec.Meta(min_length=1, max_length=50)]
