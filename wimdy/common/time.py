"""Clock helpers shared by the store, services and health probe."""

from __future__ import annotations

import datetime as dt


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp for column defaults and transitions."""
    return dt.datetime.now(dt.UTC)
