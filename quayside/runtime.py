"""Quayside runtime entrypoint for the orchestrator container.

This module provides the ASGI application factory used by Granian. It
delegates to :func:`quayside.api.app.create_app` for application
construction while keeping the ``quayside.runtime:create_app`` entrypoint
stable.

When the ``QUAYSIDE_*`` configuration and the service registry load, the
runtime builds full ``AppDependencies`` so the app accepts push events on
``POST /events``. Otherwise it starts in health-only mode with ``/ready``
reporting a degraded state, and the configuration error is logged.

Configuration is driven by environment variables:

- ``QUAYSIDE_HOST``: Bind address (default ``0.0.0.0``)
- ``QUAYSIDE_PORT``: Listen port (default ``8080``)
- ``QUAYSIDE_LOG_LEVEL``: Log level (default ``INFO``)
- ``QUAYSIDE_INIT_SERVICES``: Run the bulk initialisation pass before
  serving
- ``QUAYSIDE_BUILD_ON_INIT``: Also build and deploy during that pass

See :class:`quayside.config.OrchestratorConfig` for the pipeline settings.

Run the service directly with ``python -m quayside.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from quayside.errors import ConfigError, QuaysideError
from quayside.logging import configure_from_env, get_logger, log_error, log_info

if typ.TYPE_CHECKING:
    import falcon.asgi

    from quayside.config import OrchestratorConfig

__all__ = ["create_app", "main", "run_startup_init"]

logger = get_logger(__name__)

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
            "Invalid QUAYSIDE_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def run_startup_init(config: OrchestratorConfig | None = None) -> None:
    """Run the bulk pass before serving when the container asks for it.

    Failures are logged and never stop the server from starting.
    """
    try:
        if config is None:
            from quayside.config import OrchestratorConfig

            config = OrchestratorConfig.from_env()
        if not config.init_services:
            return

        from quayside.bulk import initialize_all
        from quayside.pipeline import build_orchestrator

        log_info(
            logger,
            "Initialising services before serving (build_on_init=%s)",
            config.build_on_init,
        )
        report = initialize_all(
            build_orchestrator(config), also_deploy=config.build_on_init
        )
    except QuaysideError as exc:
        log_error(logger, "Startup initialisation skipped: %s", exc)
        return

    for failure in report.failures:
        log_error(logger, "Initialising %s failed: %s", failure.service, failure.error)


def create_app() -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Loads configuration and the service registry. On success the app
    includes ``POST /events``; on a :class:`~quayside.errors.ConfigError`
    only ``/health`` and ``/ready`` are served.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    from quayside.api.app import AppDependencies
    from quayside.api.app import create_app as _create_api_app

    try:
        from quayside.config import OrchestratorConfig

        config = OrchestratorConfig.from_env()

        from quayside.jobs import get_orchestrator, handle_push_job

        orchestrator = get_orchestrator(config)
    except ConfigError as exc:
        log_error(logger, "Starting in health-only mode: %s", exc)
        return _create_api_app()

    deps = AppDependencies(router=orchestrator.router, enqueue=handle_push_job.send)
    return _create_api_app(deps)


def main(*, port: str | None = None) -> None:
    """Start the Quayside runtime server using Granian.

    Reads ``QUAYSIDE_HOST``, ``QUAYSIDE_PORT``, and ``QUAYSIDE_LOG_LEVEL``
    from the environment and starts the ASGI server. An explicit ``port``
    takes precedence over ``QUAYSIDE_PORT``.
    """
    from granian import Granian
    from granian.constants import Interfaces

    # Bind every interface inside the container.
    host = os.environ.get("QUAYSIDE_HOST", "0.0.0.0")  # noqa: S104
    raw_port = port if port is not None else os.environ.get("QUAYSIDE_PORT", "8080")
    listen_port = _parse_port(raw_port)
    logging_setup = configure_from_env()

    run_startup_init()

    log_info(
        logger,
        "Starting Quayside runtime on %s:%d (log_level=%s)",
        host,
        listen_port,
        logging_setup.level,
    )

    server = Granian(
        "quayside.runtime:create_app",
        address=host,
        port=listen_port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
