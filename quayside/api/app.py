"""Application factory for the Quayside Falcon ASGI application.

Usage
-----
Create a probe-only app (no registry)::

    app = create_app()

Create a full app that accepts push events::

    from quayside.api.app import AppDependencies, create_app
    from quayside.jobs import handle_push_job

    deps = AppDependencies(router=router, enqueue=handle_push_job.send)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from quayside.api.errors import InvalidInputError, handle_invalid_input
from quayside.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from quayside.routing import EventRouter

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    When both ``router`` and ``enqueue`` are provided the application
    accepts push events on ``POST /events``; otherwise only the health
    endpoints are registered.

    Attributes
    ----------
    router
        Router over the loaded service registry.
    enqueue
        Hook that schedules a pipeline for ``(repo_full_name, ref)``.

    """

    router: EventRouter | None = None
    enqueue: cabc.Callable[[str, str], object] | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None`` or incomplete,
        only ``/health`` and ``/ready`` are available and ``/ready``
        reports a degraded state.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()

    router = dependencies.router if dependencies is not None else None
    enqueue = dependencies.enqueue if dependencies is not None else None
    accepting_events = router is not None and enqueue is not None

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(accepting_events=accepting_events))

    if router is not None and enqueue is not None:
        from quayside.api.events.resources import (
            EventResource,
            EventResourceDependencies,
        )

        app.add_route(
            "/events",
            EventResource(EventResourceDependencies(router=router, enqueue=enqueue)),
        )

    app.add_error_handler(InvalidInputError, handle_invalid_input)
    return app
