"""Dramatiq actors that run pipelines off the request path.

The HTTP intake enqueues :func:`handle_push_job` and returns at once;
Dramatiq workers run the pipeline. One orchestrator is cached per registry
path so every worker thread in a process shares the same per-service locks.

Actors never retry: a failed sync, build or deploy is logged and left for
the next push or an operator to re-run, as every step is idempotent.

Usage
-----
>>> handle_push_job.send("acme/blog", "refs/tags/v2.0.0")
>>> initialize_services_job.send(also_deploy=True)

"""

from __future__ import annotations

import threading
import typing as typ

import dramatiq

from quayside._broker import ensure_broker_configured
from quayside.bulk import initialize_all
from quayside.config import OrchestratorConfig
from quayside.errors import QuaysideError
from quayside.logging import get_logger, log_error, log_info
from quayside.pipeline import build_orchestrator

if typ.TYPE_CHECKING:
    from quayside.pipeline import Orchestrator

logger = get_logger(__name__)

ensure_broker_configured()

_ORCHESTRATOR_CACHE: dict[str, Orchestrator] = {}
_CACHE_LOCK = threading.Lock()


def get_orchestrator(config: OrchestratorConfig | None = None) -> Orchestrator:
    """Return the cached orchestrator for ``config``'s registry path.

    Thread-safe: Dramatiq runs actors on several threads per process.

    Raises
    ------
    ConfigError
        If the environment or registry is invalid.

    """
    resolved = config or OrchestratorConfig.from_env()
    key = str(resolved.registry_path)
    with _CACHE_LOCK:
        orchestrator = _ORCHESTRATOR_CACHE.get(key)
        if orchestrator is None:
            orchestrator = _ORCHESTRATOR_CACHE[key] = build_orchestrator(resolved)
        return orchestrator


def reset_orchestrator_cache() -> None:
    """Drop cached orchestrators so the next job reloads the registry."""
    with _CACHE_LOCK:
        _ORCHESTRATOR_CACHE.clear()


@dramatiq.actor(max_retries=0)
def handle_push_job(repo_full_name: str, ref: str) -> None:
    """Run the pipeline for one push event."""
    orchestrator = get_orchestrator()
    try:
        outcome = orchestrator.handle_event(repo_full_name, ref)
    except QuaysideError as exc:
        log_error(logger, "Pipeline for %s %s failed: %s", repo_full_name, ref, exc)
        raise
    log_info(
        logger,
        "Push %s %s finished with status %s",
        repo_full_name,
        ref,
        outcome.status,
    )


@dramatiq.actor(max_retries=0)
def initialize_services_job(*, also_deploy: bool = False) -> None:
    """Run the bulk initialisation pass."""
    report = initialize_all(get_orchestrator(), also_deploy=also_deploy)
    for failure in report.failures:
        log_error(logger, "Initialising %s failed: %s", failure.service, failure.error)


__all__ = [
    "get_orchestrator",
    "handle_push_job",
    "initialize_services_job",
    "reset_orchestrator_cache",
]
