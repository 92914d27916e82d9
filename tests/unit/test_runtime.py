"""Unit tests for the wimdy.runtime module."""

from __future__ import annotations

import datetime as dt
import typing as typ
from http import HTTPStatus

import falcon.asgi
import falcon.testing
import pytest

from wimdy import runtime

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> falcon.testing.TestClient:
    """Create a test client for the health-only runtime app."""
    monkeypatch.delenv("WIMDY_DATABASE_URL", raising=False)
    return falcon.testing.TestClient(runtime.create_app())


class TestHealthEndpoint:
    """Tests for the /health-check endpoint."""

    def test_health_returns_200(self, client: falcon.testing.TestClient) -> None:
        """GET /health-check returns HTTP 200."""
        result = client.simulate_get("/health-check")
        assert result.status_code == HTTPStatus.OK

    def test_health_returns_status_and_timestamp(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health-check returns JSON with status ok and a UTC timestamp."""
        result = client.simulate_get("/health-check")
        assert result.json["status"] == "ok"
        stamp = dt.datetime.fromisoformat(result.json["timestamp"])
        assert stamp.utcoffset() == dt.timedelta(0), "timestamp should be UTC"

    def test_health_content_type_is_json(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health-check has application/json content type."""
        result = client.simulate_get("/health-check")
        content_type = result.headers.get("content-type", "")
        assert content_type.startswith("application/json")


class TestCreateApp:
    """Tests for the create_app factory function."""

    def test_create_app_returns_falcon_app(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """create_app returns a Falcon ASGI App instance."""
        monkeypatch.delenv("WIMDY_DATABASE_URL", raising=False)
        assert isinstance(runtime.create_app(), falcon.asgi.App)

    def test_without_database_domain_routes_are_absent(
        self, client: falcon.testing.TestClient
    ) -> None:
        """Health-only mode serves no repository endpoints."""
        result = client.simulate_get("/repositories")
        assert result.status_code == HTTPStatus.NOT_FOUND

    def test_database_url_enables_domain_routes(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """Setting WIMDY_DATABASE_URL registers the domain endpoints."""
        monkeypatch.setenv(
            "WIMDY_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'runtime.db'}"
        )
        client = falcon.testing.TestClient(runtime.create_app())

        result = client.simulate_get("/dashboard")

        assert result.status_code == HTTPStatus.UNAUTHORIZED, "route should exist"

    def test_invalid_tunable_fails_fast(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Malformed service tunables abort app construction."""
        monkeypatch.delenv("WIMDY_DATABASE_URL", raising=False)
        monkeypatch.setenv("WIMDY_REPOSITORIES_PER_PAGE", "lots")
        with pytest.raises(ValueError, match="must be an integer"):
            runtime.create_app()


class TestParsePort:
    """Tests for WIMDY_PORT validation."""

    @pytest.mark.parametrize("raw", ["1", "8080", "65535"])
    def test_accepts_valid_ports(self, raw: str) -> None:
        """Ports within range are returned as integers."""
        assert runtime._parse_port(raw) == int(raw)

    @pytest.mark.parametrize("raw", ["0", "65536", "http", ""])
    def test_rejects_invalid_ports(self, raw: str) -> None:
        """Out-of-range or non-numeric ports exit with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            runtime._parse_port(raw)
        assert excinfo.value.code == 1


class _FakeGranian:
    """Record Granian construction and serve calls."""

    instances: typ.ClassVar[list[_FakeGranian]] = []

    def __init__(self, target: str, **kwargs: object) -> None:
        self.target = target
        self.kwargs = kwargs
        self.served = False
        _FakeGranian.instances.append(self)

    def serve(self) -> None:
        self.served = True


class TestMain:
    """Tests for the Granian entrypoint."""

    def test_main_serves_factory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """main() hands the factory path and bind settings to Granian."""
        import granian

        _FakeGranian.instances.clear()
        monkeypatch.setattr(granian, "Granian", _FakeGranian)
        monkeypatch.setattr(runtime, "configure_logging", lambda level: (level, False))
        monkeypatch.setenv("WIMDY_HOST", "127.0.0.1")
        monkeypatch.setenv("WIMDY_PORT", "9000")

        runtime.main()

        (server,) = _FakeGranian.instances
        assert server.target == "wimdy.runtime:create_app"
        assert server.kwargs["address"] == "127.0.0.1"
        assert server.kwargs["port"] == 9000
        assert server.kwargs["factory"] is True
        assert server.served, "server should be started"

    def test_main_rejects_bad_port(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """An invalid WIMDY_PORT stops startup before Granian is built."""
        import granian

        _FakeGranian.instances.clear()
        monkeypatch.setattr(granian, "Granian", _FakeGranian)
        monkeypatch.setenv("WIMDY_PORT", "not-a-port")

        with pytest.raises(SystemExit):
            runtime.main()
        assert _FakeGranian.instances == [], "server must not be built"
