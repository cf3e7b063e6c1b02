"""Command-line interface for the Quayside orchestrator.

Usage:
    quayside rebuild acme/blog refs/tags/v2.0.0   # Run one pipeline now
    quayside init --build                         # Sync and redeploy all
    quayside init --queue                         # Same pass, on a worker
    quayside lint services.json --schema-out s.json
    quayside serve                                # Start the HTTP intake

``rebuild`` takes the same two arguments as the webhook gateway passes to
the container, so a gateway can shell out to it directly instead of posting
to ``/events``.

Exit codes:
    0 - success, or an event that no service follows
    1 - a pipeline step failed
    2 - configuration or registry error
"""

from __future__ import annotations

import sys
import typing as typ
from pathlib import Path

import msgspec
from cyclopts import App, Parameter

from quayside import __version__
from quayside.errors import ConfigError, QuaysideError, RegistryConfigError
from quayside.logging import configure_from_env

if typ.TYPE_CHECKING:
    from quayside.pipeline import Orchestrator

EXIT_OK = 0
EXIT_PIPELINE_FAILED = 1
EXIT_CONFIG_ERROR = 2

app = App(
    name="quayside",
    help="Keep containerised services in sync with their git repositories",
    version=__version__,
)


def _configure_cli_logging() -> None:
    configure_from_env()


def _load_orchestrator() -> Orchestrator:
    from quayside.config import OrchestratorConfig
    from quayside.pipeline import build_orchestrator

    return build_orchestrator(OrchestratorConfig.from_env())


def _report_config_error(exc: ConfigError) -> int:
    print(f"Configuration error: {exc}", file=sys.stderr)
    return EXIT_CONFIG_ERROR


@app.command
def rebuild(repo_full_name: str, ref: str) -> int:
    """Route one push event and run its pipeline in the foreground.

    Args:
        repo_full_name: Repository as ``owner/name``.
        ref: Fully qualified ref, e.g. ``refs/tags/v2.0.0``.

    Returns:
        Exit code (0 for success or no-op, 1 on failure, 2 on bad config).

    """
    _configure_cli_logging()
    try:
        orchestrator = _load_orchestrator()
    except ConfigError as exc:
        return _report_config_error(exc)

    try:
        outcome = orchestrator.handle_event(repo_full_name, ref)
    except QuaysideError as exc:
        print(f"Pipeline failed: {exc}", file=sys.stderr)
        return EXIT_PIPELINE_FAILED

    if outcome.service is None:
        print(f"Nothing to do for {repo_full_name} {ref}: {outcome.reason}")
        return EXIT_OK

    print(f"{outcome.service}: {outcome.status}")
    if outcome.warning is not None:
        print(f"warning: {outcome.warning}", file=sys.stderr)
    return EXIT_OK


def _queue_init(*, also_deploy: bool) -> int:
    try:
        from quayside.jobs import initialize_services_job
    except ConfigError as exc:
        return _report_config_error(exc)

    initialize_services_job.send(also_deploy=also_deploy)
    print(f"Queued bulk initialisation (build={also_deploy})")
    return EXIT_OK


@app.command
def init(*, build: bool = False, queue: bool = False) -> int:
    """Sync every registered service to its newest tag.

    Every service is attempted; one failure does not stop the others.

    Args:
        build: Also build (swarm) and redeploy each service.
        queue: Hand the pass to a worker through the job broker instead of
            running it here.

    Returns:
        Exit code (0 when every service succeeded or the pass was queued,
        1 otherwise).

    """
    from quayside.bulk import initialize_all

    _configure_cli_logging()
    if queue:
        return _queue_init(also_deploy=build)

    try:
        orchestrator = _load_orchestrator()
    except ConfigError as exc:
        return _report_config_error(exc)

    report = initialize_all(orchestrator, also_deploy=build)
    for outcome in report.succeeded:
        if outcome.warning is None:
            print(f"  ok      {outcome.service}")
        else:
            print(f"  warning {outcome.service}: {outcome.warning}")
    for failure in report.failures:
        print(f"  failed  {failure.service}: {failure.error}")
    print(
        f"{len(report.succeeded)} synced, {len(report.warnings)} warnings, "
        f"{len(report.failures)} failed"
    )
    return EXIT_OK if report.ok else EXIT_PIPELINE_FAILED


@app.command
def lint(
    registry_path: Path,
    *,
    schema_out: Path | None = None,
    json_out: Path | None = None,
) -> int:
    """Validate a registry file and optionally export artefacts.

    Args:
        registry_path: JSON or YAML registry to validate.
        schema_out: Optional path to write the registry JSON Schema.
        json_out: Optional path to write the validated entries as JSON.

    Returns:
        Exit code (0 when valid, 2 when validation fails).

    """
    from quayside.registry import load_registry, write_registry_schema

    try:
        registry = load_registry(registry_path)
    except RegistryConfigError as exc:
        print(f"Registry validation failed for {registry_path}:")
        for issue in exc.issues:
            print(f"  - {issue}")
        return EXIT_CONFIG_ERROR

    if schema_out:
        write_registry_schema(schema_out)

    if json_out:
        json_out.write_bytes(msgspec.json.encode(list(registry)))

    print(f"registry {registry_path} is valid ({len(registry)} services)")
    return EXIT_OK


@app.command
def serve(
    *,
    port: typ.Annotated[str, Parameter(env_var="QUAYSIDE_PORT")] = "8080",
) -> int:
    """Start the HTTP intake with Granian.

    Runs the startup initialisation first when ``QUAYSIDE_INIT_SERVICES``
    is set.

    Args:
        port: Listen port.

    Returns:
        Exit code once the server stops.

    """
    from quayside import runtime

    runtime.main(port=port)
    return EXIT_OK


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
