"""Unit tests for the Dramatiq pipeline actors."""

from __future__ import annotations

import typing as typ

import pytest
from dramatiq.message import Message

from quayside import jobs
from quayside.config import OrchestratorConfig
from quayside.errors import DeployError
from quayside.observability import PipelineEventLogger
from quayside.pipeline import PipelineOutcome, PipelineStatus
from tests.helpers.builders import make_entry

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from quayside.registry import ServiceEntry


class _FakeOrchestrator:
    """Records calls and optionally raises."""

    def __init__(self, error: Exception | None = None) -> None:
        self.events: list[tuple[str, str]] = []
        self.error = error

    def handle_event(self, repo_full_name: str, ref: str) -> PipelineOutcome:
        self.events.append((repo_full_name, ref))
        if self.error is not None:
            raise self.error
        return PipelineOutcome(status=PipelineStatus.COMPLETED, service="blog")


@pytest.fixture(autouse=True)
def reset_cache() -> cabc.Iterator[None]:
    """Isolate the module-level orchestrator cache between tests."""
    jobs.reset_orchestrator_cache()
    yield
    jobs.reset_orchestrator_cache()


class TestHandlePushJob:
    """Tests for handle_push_job."""

    def test_send_enqueues_message(self) -> None:
        """Sending the actor places a message on its queue."""
        broker = jobs.handle_push_job.broker
        queue = broker.queues[jobs.handle_push_job.queue_name]
        while queue.qsize():
            queue.get_nowait()

        jobs.handle_push_job.send("acme/blog", "refs/tags/v2.0.0")

        assert queue.qsize() == 1, "queue should hold one message"
        decoded = Message.decode(queue.get_nowait())
        assert list(decoded.args) == ["acme/blog", "refs/tags/v2.0.0"]

    def test_actor_never_retries(self) -> None:
        """Failed pipelines are not retried automatically."""
        assert jobs.handle_push_job.options["max_retries"] == 0
        assert jobs.initialize_services_job.options["max_retries"] == 0

    def test_runs_pipeline(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The actor body hands the event to the orchestrator."""
        fake = _FakeOrchestrator()
        monkeypatch.setattr(jobs, "get_orchestrator", lambda *_: fake)

        jobs.handle_push_job.fn("acme/blog", "refs/tags/v2.0.0")

        assert fake.events == [("acme/blog", "refs/tags/v2.0.0")]

    def test_failures_propagate(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Pipeline errors reach Dramatiq so the message is marked failed."""
        fake = _FakeOrchestrator(DeployError("blog", "compose up failed"))
        monkeypatch.setattr(jobs, "get_orchestrator", lambda *_: fake)

        with pytest.raises(DeployError):
            jobs.handle_push_job.fn("acme/blog", "refs/tags/v2.0.0")


class _BulkOrchestrator:
    """Runs a scripted bulk pass over named services."""

    def __init__(self, *names: str, failing: str | None = None) -> None:
        self.registry = [make_entry(name, f"acme/{name}") for name in names]
        self.event_logger = PipelineEventLogger()
        self.failing = failing
        self.runs: list[tuple[str, bool]] = []

    def run_pipeline(
        self, entry: ServiceEntry, target: None, *, deploy: bool
    ) -> PipelineOutcome:
        del target
        self.runs.append((entry.name, deploy))
        if entry.name == self.failing:
            raise DeployError(entry.name, "stack deploy failed")
        return PipelineOutcome(status=PipelineStatus.COMPLETED, service=entry.name)


class TestInitializeServicesJob:
    """Tests for initialize_services_job."""

    def test_runs_the_bulk_pass(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The actor body syncs and deploys every registered service."""
        fake = _BulkOrchestrator("blog", "api")
        monkeypatch.setattr(jobs, "get_orchestrator", lambda *_: fake)

        jobs.initialize_services_job.fn(also_deploy=True)

        assert fake.runs == [("blog", True), ("api", True)]

    def test_one_failure_does_not_fail_the_job(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing service is logged and the rest still run."""
        fake = _BulkOrchestrator("blog", "api", failing="blog")
        monkeypatch.setattr(jobs, "get_orchestrator", lambda *_: fake)

        jobs.initialize_services_job.fn()

        assert fake.runs == [("blog", False), ("api", False)]


class TestGetOrchestrator:
    """Tests for the cached orchestrator."""

    def test_cached_per_registry_path(
        self, write_registry: cabc.Callable[..., Path], tmp_path: Path
    ) -> None:
        """One orchestrator is shared per registry path."""
        path = write_registry({"blog": {"repo": "acme/blog", "url": "x"}})
        config = OrchestratorConfig(registry_path=path, repos_dir=tmp_path / "r")

        first = jobs.get_orchestrator(config)
        second = jobs.get_orchestrator(config)

        assert first is second
        assert first.registry.names() == ("blog",)

    def test_reset_reloads(
        self, write_registry: cabc.Callable[..., Path], tmp_path: Path
    ) -> None:
        """Resetting the cache picks up registry edits."""
        path = write_registry({"blog": {"repo": "acme/blog", "url": "x"}})
        config = OrchestratorConfig(registry_path=path, repos_dir=tmp_path / "r")
        jobs.get_orchestrator(config)

        write_registry(
            {
                "blog": {"repo": "acme/blog", "url": "x"},
                "api": {"repo": "acme/api", "url": "y"},
            }
        )
        jobs.reset_orchestrator_cache()

        assert jobs.get_orchestrator(config).registry.names() == ("blog", "api")
