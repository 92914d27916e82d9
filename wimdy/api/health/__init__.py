"""Health check resource for liveness probes.

Usage
-----
Import the resource for route registration::

    from wimdy.api.health.resources import HealthCheckResource
"""
