"""Push-event intake for the orchestrator.

``POST /events`` accepts a push notification that the webhook gateway has
already authenticated, routes it against the registry and, when a service
follows the ref, enqueues the pipeline. The request never waits for a
clone, build or deploy.

Two body shapes are accepted::

    {"repository": "acme/blog", "ref": "refs/tags/v2.0.0"}
    {"repository": {"full_name": "acme/blog"}, "ref": "refs/tags/v2.0.0"}

The second is the GitHub/Gitea push payload, of which only these fields are
read.

Usage
-----
Register the resource on the Falcon app::

    app.add_route(
        "/events",
        EventResource(EventResourceDependencies(router, handle_push_job.send)),
    )

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon
import msgspec

from quayside.api.errors import InvalidInputError
from quayside.routing import NoOp

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

    from quayside.routing import EventRouter

__all__ = [
    "EventResource",
    "EventResourceDependencies",
    "PushEventPayload",
    "RepositoryPayload",
]

_EVENT_HEADER = "X-GitHub-Event"
_GITEA_EVENT_HEADER = "X-Gitea-Event"


class RepositoryPayload(msgspec.Struct):
    """Repository object of a forge push payload."""

    full_name: str


class PushEventPayload(msgspec.Struct):
    """Fields of a push notification the orchestrator needs."""

    ref: str
    repository: str | RepositoryPayload

    @property
    def repo_full_name(self) -> str:
        """Return the ``owner/name`` of the pushed repository."""
        if isinstance(self.repository, RepositoryPayload):
            return self.repository.full_name
        return self.repository


@dc.dataclass(frozen=True, slots=True)
class EventResourceDependencies:
    """Collaborators for ``EventResource``.

    Attributes
    ----------
    router
        Router over the loaded registry.
    enqueue
        Called with ``(repo_full_name, ref)`` for routed events, normally
        ``handle_push_job.send``.

    """

    router: EventRouter
    enqueue: cabc.Callable[[str, str], object]


def _decode_payload(raw: bytes) -> PushEventPayload:
    if not raw:
        raise InvalidInputError("request body is empty")
    try:
        return msgspec.json.decode(raw, type=PushEventPayload)
    except msgspec.ValidationError as exc:
        raise InvalidInputError.from_validation(exc) from exc
    except msgspec.DecodeError as exc:
        raise InvalidInputError(f"malformed JSON: {exc}") from exc


class EventResource:
    """Resource accepting push events on ``POST /events``."""

    def __init__(self, dependencies: EventResourceDependencies) -> None:
        """Configure the resource with its router and enqueue hook."""
        self._router = dependencies.router
        self._enqueue = dependencies.enqueue

    async def on_post(self, req: Request, resp: Response) -> None:
        """Route a push event and enqueue its pipeline.

        Responds 202 when a pipeline was queued and 200 when the event was
        ignored (ping, non-push event, unsupported ref, or no matching
        service), so the sender never retries a delivery that needs no work.
        """
        event_type = req.get_header(_EVENT_HEADER) or req.get_header(
            _GITEA_EVENT_HEADER
        )
        if event_type == "ping":
            resp.media = {"status": "pong"}
            resp.status = falcon.HTTP_200
            return
        if event_type is not None and event_type != "push":
            resp.media = {"status": "ignored", "reason": f"event {event_type}"}
            resp.status = falcon.HTTP_200
            return

        payload = _decode_payload(await req.stream.read())
        action = self._router.route(payload.repo_full_name, payload.ref)
        if isinstance(action, NoOp):
            resp.media = {
                "status": "ignored",
                "reason": str(action.reason),
                "detail": action.detail,
            }
            resp.status = falcon.HTTP_200
            return

        self._enqueue(payload.repo_full_name, payload.ref)
        resp.media = {
            "status": "queued",
            "service": action.entry.name,
            "ref": str(action.target),
        }
        resp.status = falcon.HTTP_202
