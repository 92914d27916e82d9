"""Repository slug utilities.

A Wimdy slug is the URL-safe form of a repository name followed by a random
four digit disambiguator, for example ``my-project-4821``. The slug is
assigned once at creation and never recomputed, so renaming a repository
keeps its URL stable.
"""

from __future__ import annotations

import random
import re
import typing as typ
import unicodedata

SLUG_SUFFIX_MIN = 1000
SLUG_SUFFIX_MAX = 9999
FALLBACK_STEM = "repository"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*-\d{4}$")

type SuffixSource = typ.Callable[[int, int], int]


def slugify(name: str) -> str:
    """Reduce ``name`` to lowercase ASCII words joined by hyphens.

    Accented characters are transliterated where Unicode provides a
    decomposition; anything else outside ``[a-z0-9]`` becomes a separator.
    Names with no usable characters fall back to ``"repository"``.

    Examples
    --------
    >>> slugify("Hello, World!")
    'hello-world'
    >>> slugify("Café au lait")
    'cafe-au-lait'
    >>> slugify("!!!")
    'repository'

    """
    ascii_name = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    stem = _NON_ALNUM.sub("-", ascii_name.lower()).strip("-")
    return stem or FALLBACK_STEM


def repo_slug(name: str, *, suffix_source: SuffixSource | None = None) -> str:
    """Build a candidate repository slug from ``name``.

    Parameters
    ----------
    name:
        Display name of the repository.
    suffix_source:
        Callable returning an integer in ``[low, high]``. Defaults to
        :func:`random.randint`; tests inject a deterministic source.

    Returns
    -------
    str
        ``slugify(name)`` followed by ``-NNNN``.

    Examples
    --------
    >>> repo_slug("Demo", suffix_source=lambda low, high: 4242)
    'demo-4242'

    """
    source = suffix_source or random.randint
    suffix = source(SLUG_SUFFIX_MIN, SLUG_SUFFIX_MAX)
    return f"{slugify(name)}-{suffix}"


def is_repo_slug(slug: str) -> bool:
    """Return whether ``slug`` has the shape produced by :func:`repo_slug`."""
    return _SLUG_PATTERN.fullmatch(slug) is not None
