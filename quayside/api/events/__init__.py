"""Push-event intake resource."""

from __future__ import annotations

from quayside.api.events.resources import EventResource, EventResourceDependencies

__all__ = ["EventResource", "EventResourceDependencies"]
