"""Per-service Sync, Build, Publish and Deploy pipeline.

One :class:`Orchestrator` serves every event in a process. Pipelines for the
same service are serialised by a per-service lock, because they share one
working copy on disk; pipelines for different services run concurrently.
Within a pipeline each step finishes before the next starts, and the first
failure stops the run.

Usage
-----
Build an orchestrator from the environment and handle one push event::

    orchestrator = build_orchestrator(OrchestratorConfig.from_env())
    outcome = orchestrator.handle_event("acme/blog", "refs/tags/v2.0.0")

"""

from __future__ import annotations

import contextlib
import dataclasses
import enum
import fcntl
import os
import threading
import typing as typ

from quayside.config import DeployMode
from quayside.deploy import DeploymentDispatcher, build_deployment_target
from quayside.errors import QuaysideError
from quayside.images import ImagePublisher, image_tag_for
from quayside.observability import PipelineEventLogger
from quayside.process import CommandRunner
from quayside.registry import load_registry
from quayside.routing import EventRouter, NoOp
from quayside.sync import GitClient, RepoSyncEngine

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from quayside.config import OrchestratorConfig
    from quayside.deploy import DeployResult
    from quayside.images import PublishedImage
    from quayside.refs import ResolvedRef
    from quayside.registry import Registry, ServiceEntry
    from quayside.sync import SyncResult

# Service names cannot start with a dot, so this never shadows a working copy.
LOCK_DIR_NAME = ".locks"


class ServiceLocks:
    """Lazily created mutual-exclusion lock per service name.

    Threads of one process share an in-memory lock per service. With
    ``lock_dir`` set, an exclusive ``flock`` on ``<lock_dir>/<service>.lock``
    is also held, which extends the exclusion to every worker process that
    shares the directory.
    """

    def __init__(self, lock_dir: Path | None = None) -> None:
        """Start with no locks; they are created on first use."""
        self.lock_dir = lock_dir
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, service: str) -> threading.Lock:
        """Return the lock for ``service``, creating it if needed."""
        with self._guard:
            lock = self._locks.get(service)
            if lock is None:
                lock = self._locks[service] = threading.Lock()
            return lock

    @contextlib.contextmanager
    def hold(self, service: str) -> cabc.Iterator[None]:
        """Hold ``service``'s lock for the duration of the block."""
        with self.lock_for(service):
            if self.lock_dir is None:
                yield
                return

            self.lock_dir.mkdir(parents=True, exist_ok=True)
            with (self.lock_dir / f"{service}.lock").open("a") as handle:
                fcntl.flock(handle, fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(handle, fcntl.LOCK_UN)


class PipelineStatus(enum.StrEnum):
    """Terminal state of a pipeline invocation that did not raise."""

    COMPLETED = "completed"
    NOOP = "noop"


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineOutcome:
    """What one pipeline invocation did.

    Attributes
    ----------
    status
        ``COMPLETED`` after a run, ``NOOP`` when routing matched nothing.
    service
        Service the pipeline ran for; ``None`` for a no-op.
    sync
        Sync result, when a sync ran.
    image
        Published image, in swarm mode only.
    deploy
        Deploy result, unless deployment was skipped.
    reason
        Explanation for a no-op.

    """

    status: PipelineStatus
    service: str | None = None
    sync: SyncResult | None = None
    image: PublishedImage | None = None
    deploy: DeployResult | None = None
    reason: str | None = None

    @property
    def warning(self) -> str | None:
        """Return the sync warning, if any."""
        return self.sync.warning if self.sync is not None else None


@dataclasses.dataclass(frozen=True, slots=True)
class PipelineDependencies:
    """Collaborators that perform the pipeline's side effects."""

    sync_engine: RepoSyncEngine
    publisher: ImagePublisher
    dispatcher: DeploymentDispatcher


class Orchestrator:
    """Route events and run per-service pipelines.

    Parameters
    ----------
    registry:
        Loaded service registry.
    config:
        Process-wide configuration.
    dependencies:
        Sync engine, image publisher and deployment dispatcher.
    locks:
        Per-service locks; pass a shared instance to serialise across
        several orchestrators.
    event_logger:
        Structured event sink.

    """

    def __init__(
        self,
        registry: Registry,
        config: OrchestratorConfig,
        dependencies: PipelineDependencies,
        *,
        locks: ServiceLocks | None = None,
        event_logger: PipelineEventLogger | None = None,
    ) -> None:
        """Wire the orchestrator to its registry and collaborators."""
        self.registry = registry
        self.config = config
        self.router = EventRouter(registry)
        self._deps = dependencies
        self._locks = locks or ServiceLocks(config.repos_dir / LOCK_DIR_NAME)
        self._events = event_logger or PipelineEventLogger()

    @property
    def event_logger(self) -> PipelineEventLogger:
        """Return the structured event sink."""
        return self._events

    def handle_event(self, repo_full_name: str, raw_ref: str) -> PipelineOutcome:
        """Route a push event and run its pipeline.

        Returns a ``NOOP`` outcome, not an error, for refs that are neither
        tags nor branches and for events no service follows.

        Raises
        ------
        QuaysideError
            If any pipeline step fails.

        """
        action = self.router.route(repo_full_name, raw_ref)
        if isinstance(action, NoOp):
            self._events.log_noop(
                repo_full_name=repo_full_name, ref=raw_ref, reason=action.reason
            )
            return PipelineOutcome(status=PipelineStatus.NOOP, reason=action.detail)
        return self.run_pipeline(action.entry, action.target)

    def run_pipeline(
        self,
        entry: ServiceEntry,
        target: ResolvedRef | None,
        *,
        deploy: bool = True,
    ) -> PipelineOutcome:
        """Sync ``entry`` to ``target`` and, unless told not to, redeploy it.

        ``target=None`` checks out the newest tag. In swarm mode an image is
        built and both tags pushed before the dispatcher runs; a failed
        publish never reaches the dispatcher.

        Raises
        ------
        QuaysideError
            The first step failure, after it is logged.

        """
        with self._locks.hold(entry.name):
            try:
                return self._run_locked(entry, target, deploy=deploy)
            except QuaysideError as exc:
                self._events.log_failure(entry.name, exc)
                raise

    def _run_locked(
        self,
        entry: ServiceEntry,
        target: ResolvedRef | None,
        *,
        deploy: bool,
    ) -> PipelineOutcome:
        sync = self._deps.sync_engine.sync(entry, target)
        self._events.log_sync(sync)
        if not deploy:
            return PipelineOutcome(
                status=PipelineStatus.COMPLETED, service=entry.name, sync=sync
            )

        tag = image_tag_for(sync.ref.name if sync.ref else None, sync.commit)
        image: PublishedImage | None = None
        if self.config.deploy_mode is DeployMode.SWARM:
            image = self._deps.publisher.build_and_publish(
                entry,
                tag,
                self.config.image_registry,
                self._deps.sync_engine.working_copy(entry).path,
            )
            self._events.log_image_published(entry.name, image)

        result = self._deps.dispatcher.deploy(
            entry, build_deployment_target(self.config, tag)
        )
        self._events.log_deploy(result)
        return PipelineOutcome(
            status=PipelineStatus.COMPLETED,
            service=entry.name,
            sync=sync,
            image=image,
            deploy=result,
        )


def build_orchestrator(
    config: OrchestratorConfig,
    registry: Registry | None = None,
    *,
    locks: ServiceLocks | None = None,
) -> Orchestrator:
    """Build an orchestrator backed by real git and docker commands.

    Parameters
    ----------
    config
        Process configuration; its ``registry_path`` is loaded when
        ``registry`` is not supplied.
    registry
        Pre-loaded registry, mainly for tests.
    locks
        Shared per-service locks.

    Raises
    ------
    RegistryConfigError
        If the registry has to be loaded and is missing or invalid.

    """
    if registry is None:
        registry = load_registry(config.registry_path)

    # Credentials come from mounted SSH keys; never block on a prompt.
    git_env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    git_runner = CommandRunner(timeout=config.command_timeout, env=git_env)
    docker_runner = CommandRunner(timeout=config.command_timeout)

    dependencies = PipelineDependencies(
        sync_engine=RepoSyncEngine(config.repos_dir, GitClient(git_runner)),
        publisher=ImagePublisher(docker_runner),
        dispatcher=DeploymentDispatcher(docker_runner),
    )
    return Orchestrator(registry, config, dependencies, locks=locks)


__all__ = [
    "Orchestrator",
    "PipelineDependencies",
    "PipelineOutcome",
    "PipelineStatus",
    "ServiceLocks",
    "build_orchestrator",
]
