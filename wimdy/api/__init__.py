"""Wimdy HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: identity middleware, domain error mapping and the
resources for repositories, issues, pull requests, commits and feeds.

Usage
-----
Create and run the application::

    from wimdy.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # full mode with domain endpoints

Public API
----------
create_app
    Application factory that configures the Falcon ASGI app with the
    health endpoint and optionally the domain endpoints when a session
    factory is provided.
"""

from wimdy.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
