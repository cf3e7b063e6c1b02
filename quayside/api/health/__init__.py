"""Liveness and readiness probe resources."""

from __future__ import annotations

from quayside.api.health.resources import HealthResource, ReadyResource

__all__ = ["HealthResource", "ReadyResource"]
