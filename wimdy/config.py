"""Configuration for Wimdy services.

Usage
-----
Create a configuration with defaults:

>>> config = WimdyConfig()
>>> config.repositories_per_page
12

Or load from environment variables:

>>> import os
>>> os.environ["WIMDY_ISSUES_PER_PAGE"] = "50"
>>> WimdyConfig.from_env().issues_per_page
50

"""

from __future__ import annotations

import dataclasses as dc
import os

DEFAULT_IDENTITY_HEADER = "X-Wimdy-User-Id"


@dc.dataclass(frozen=True, slots=True)
class WimdyConfig:
    """Tunables shared by the services and the HTTP layer.

    Attributes
    ----------
    repositories_per_page
        Page size of the public repository index. Default is 12.
    issues_per_page
        Page size of a repository's issue list. Default is 20.
    pull_requests_per_page
        Page size of a repository's pull request list. Default is 20.
    commits_per_page
        Page size of a repository's commit list. Default is 30.
    slug_max_attempts
        Number of random slug suffixes tried before giving up with a
        uniqueness conflict. Default is 5.
    identity_header
        Request header carrying the user id asserted by the upstream
        session layer.

    """

    repositories_per_page: int = 12
    issues_per_page: int = 20
    pull_requests_per_page: int = 20
    commits_per_page: int = 30
    slug_max_attempts: int = 5
    identity_header: str = DEFAULT_IDENTITY_HEADER

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> WimdyConfig:
        """Create configuration from ``WIMDY_*`` environment variables.

        Reads ``WIMDY_REPOSITORIES_PER_PAGE``, ``WIMDY_ISSUES_PER_PAGE``,
        ``WIMDY_PULL_REQUESTS_PER_PAGE``, ``WIMDY_COMMITS_PER_PAGE`` and
        ``WIMDY_SLUG_MAX_ATTEMPTS`` (positive integers) plus
        ``WIMDY_IDENTITY_HEADER``.

        Raises
        ------
        ValueError
            If a numeric variable is not a positive integer.

        """
        defaults = cls()
        identity_header = os.environ.get("WIMDY_IDENTITY_HEADER", "").strip()
        return cls(
            repositories_per_page=cls._parse_positive_int(
                "WIMDY_REPOSITORIES_PER_PAGE", defaults.repositories_per_page
            ),
            issues_per_page=cls._parse_positive_int(
                "WIMDY_ISSUES_PER_PAGE", defaults.issues_per_page
            ),
            pull_requests_per_page=cls._parse_positive_int(
                "WIMDY_PULL_REQUESTS_PER_PAGE", defaults.pull_requests_per_page
            ),
            commits_per_page=cls._parse_positive_int(
                "WIMDY_COMMITS_PER_PAGE", defaults.commits_per_page
            ),
            slug_max_attempts=cls._parse_positive_int(
                "WIMDY_SLUG_MAX_ATTEMPTS", defaults.slug_max_attempts
            ),
            identity_header=identity_header or defaults.identity_header,
        )
