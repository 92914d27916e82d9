"""Wimdy runtime entrypoint.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`wimdy.api.app.create_app` for application construction
while keeping the ``wimdy.runtime:create_app`` entrypoint stable.

When ``WIMDY_DATABASE_URL`` is set, the runtime builds full
``AppDependencies`` so the app serves the domain endpoints. Otherwise it
starts in health-only mode.

Configuration is driven by environment variables:

- ``WIMDY_HOST``: Bind address (default ``0.0.0.0``)
- ``WIMDY_PORT``: Listen port (default ``8080``)
- ``WIMDY_LOG_LEVEL``: Log level (default ``INFO``)
- ``WIMDY_DATABASE_URL``: Database connection URL (optional; enables
  domain endpoints when set)
- ``WIMDY_*`` service tunables read by :meth:`WimdyConfig.from_env`

Run the service directly with ``python -m wimdy.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

if typ.TYPE_CHECKING:
    import falcon.asgi
from wimdy.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid WIMDY_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    When ``WIMDY_DATABASE_URL`` is set, builds a session factory so the app
    includes the domain endpoints. Otherwise only ``/health-check`` is
    available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from wimdy.api.app import AppDependencies
    from wimdy.api.app import create_app as _create_api_app
    from wimdy.config import WimdyConfig

    config = WimdyConfig.from_env()
    database_url = os.environ.get("WIMDY_DATABASE_URL")

    if database_url is None:
        return _create_api_app(AppDependencies(config=config))

    from wimdy.store import create_engine, create_session_factory

    engine = create_engine(database_url)
    deps = AppDependencies(
        session_factory=create_session_factory(engine),
        config=config,
    )
    return _create_api_app(deps)


def main() -> None:
    """Start the Wimdy runtime server using Granian.

    Reads ``WIMDY_HOST``, ``WIMDY_PORT``, and ``WIMDY_LOG_LEVEL`` from the
    environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("WIMDY_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port_str = os.environ.get("WIMDY_PORT", "8080")
    port = _parse_port(port_str)
    log_level_str = os.environ.get("WIMDY_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid WIMDY_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Wimdy runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "wimdy.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
