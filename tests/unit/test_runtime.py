"""Unit tests for the quayside.runtime module."""

from __future__ import annotations

import os
import typing as typ
from http import HTTPStatus

import falcon.testing
import pytest

from quayside import jobs, runtime
from quayside.bulk import BulkReport
from quayside.config import OrchestratorConfig
from quayside.logging import LoggingSetup

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> cabc.Iterator[None]:
    """Point the runtime at scratch paths and reset cached orchestrators."""
    monkeypatch.setenv("QUAYSIDE_REPOS_DIR", str(tmp_path / "repos"))
    monkeypatch.setenv("QUAYSIDE_REGISTRY_PATH", str(tmp_path / "missing.json"))
    for name in ("QUAYSIDE_INIT_SERVICES", "QUAYSIDE_BUILD_ON_INIT"):
        monkeypatch.delenv(name, raising=False)
    jobs.reset_orchestrator_cache()
    yield
    jobs.reset_orchestrator_cache()


class TestCreateApp:
    """Tests for the runtime create_app factory."""

    def test_missing_registry_serves_health_only(self) -> None:
        """Configuration errors degrade to health-only mode."""
        client = falcon.testing.TestClient(runtime.create_app())

        assert client.simulate_get("/health").status_code == HTTPStatus.OK
        ready = client.simulate_get("/ready")
        assert ready.status_code == HTTPStatus.SERVICE_UNAVAILABLE
        events = client.simulate_post(
            "/events", json={"repository": "acme/blog", "ref": "refs/tags/v1"}
        )
        assert events.status_code == HTTPStatus.NOT_FOUND

    def test_invalid_environment_serves_health_only(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A bad QUAYSIDE_* value is not fatal to the health endpoints."""
        monkeypatch.setenv("QUAYSIDE_DEPLOY_MODE", "nomad")

        client = falcon.testing.TestClient(runtime.create_app())

        assert client.simulate_get("/health").status_code == HTTPStatus.OK

    def test_registry_enables_event_intake(
        self,
        monkeypatch: pytest.MonkeyPatch,
        write_registry: cabc.Callable[..., Path],
    ) -> None:
        """With a valid registry, POST /events is served."""
        path = write_registry({"blog": {"repo": "acme/blog", "url": "x"}})
        monkeypatch.setenv("QUAYSIDE_REGISTRY_PATH", str(path))

        client = falcon.testing.TestClient(runtime.create_app())

        assert client.simulate_get("/ready").json == {"status": "ready"}
        result = client.simulate_post(
            "/events", json={"repository": "acme/blog", "ref": "refs/tags/v1"}
        )
        assert result.status_code == HTTPStatus.ACCEPTED


class TestParsePort:
    """Tests for _parse_port."""

    def test_valid_port(self) -> None:
        """Ports in range are returned as integers."""
        assert runtime._parse_port("8080") == 8080

    @pytest.mark.parametrize("value", ["0", "65536", "http"])
    def test_invalid_port_exits(self, value: str) -> None:
        """Invalid ports stop the process."""
        with pytest.raises(SystemExit):
            runtime._parse_port(value)


class TestRunStartupInit:
    """Tests for run_startup_init."""

    def test_disabled_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Nothing runs unless QUAYSIDE_INIT_SERVICES is set."""
        calls: list[object] = []
        monkeypatch.setattr(
            "quayside.bulk.initialize_all", lambda *a, **k: calls.append(a)
        )

        runtime.run_startup_init(OrchestratorConfig())

        assert calls == []

    def test_runs_bulk_pass(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The bulk pass runs with build_on_init as also_deploy."""
        calls: list[bool] = []

        def fake_initialize_all(_orchestrator: object, *, also_deploy: bool) -> object:
            calls.append(also_deploy)
            return BulkReport()

        monkeypatch.setattr("quayside.bulk.initialize_all", fake_initialize_all)
        monkeypatch.setattr(
            "quayside.pipeline.build_orchestrator", lambda config: object()
        )

        runtime.run_startup_init(
            OrchestratorConfig(init_services=True, build_on_init=True)
        )

        assert calls == [True]

    def test_config_errors_are_not_fatal(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A missing registry is logged and startup continues."""
        monkeypatch.setenv("QUAYSIDE_INIT_SERVICES", "1")

        runtime.run_startup_init()


def test_main_starts_granian(monkeypatch: pytest.MonkeyPatch) -> None:
    """main() configures Granian with the factory entrypoint."""
    captured: dict[str, object] = {}

    class _FakeGranian:
        def __init__(self, target: str, **kwargs: object) -> None:
            captured["target"] = target
            captured.update(kwargs)

        def serve(self) -> None:
            captured["served"] = True

    monkeypatch.setattr("granian.Granian", _FakeGranian)
    monkeypatch.setattr(
        runtime,
        "configure_from_env",
        lambda: LoggingSetup(level="INFO", requested=None, invalid=False),
    )
    monkeypatch.setenv("QUAYSIDE_PORT", "9090")

    runtime.main()

    assert captured["target"] == "quayside.runtime:create_app"
    assert captured["port"] == 9090
    assert captured["factory"] is True
    assert captured["served"] is True


def test_main_prefers_explicit_port(monkeypatch: pytest.MonkeyPatch) -> None:
    """A port passed by the caller wins over QUAYSIDE_PORT, which is left alone."""
    captured: dict[str, object] = {}

    class _FakeGranian:
        def __init__(self, target: str, **kwargs: object) -> None:
            captured.update(kwargs)

        def serve(self) -> None:
            captured["served"] = True

    monkeypatch.setattr("granian.Granian", _FakeGranian)
    monkeypatch.setattr(
        runtime,
        "configure_from_env",
        lambda: LoggingSetup(level="INFO", requested=None, invalid=False),
    )
    monkeypatch.setenv("QUAYSIDE_PORT", "9090")

    runtime.main(port="7070")

    assert captured["port"] == 7070
    assert os.environ["QUAYSIDE_PORT"] == "9090"
