"""Health probe resources for container liveness and readiness checks.

Both resources are stateless and always registered, so the container can be
probed even when no registry is configured.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reporting whether events can be accepted.

    Parameters
    ----------
    accepting_events
        False when the app runs without a registry and only serves probes.

    """

    def __init__(self, *, accepting_events: bool = True) -> None:
        """Record whether the event intake is wired."""
        self._accepting_events = accepting_events

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Responds 200 with ``{"status": "ready"}`` when the event intake is
        available and 503 with ``{"status": "degraded"}`` otherwise.
        """
        if self._accepting_events:
            resp.media = {"status": "ready"}
            resp.status = HTTPStatus.OK
            return
        resp.media = {"status": "degraded"}
        resp.status = HTTPStatus.SERVICE_UNAVAILABLE
