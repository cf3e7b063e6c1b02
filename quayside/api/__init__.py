"""Falcon ASGI application for push-event intake and health probes."""

from __future__ import annotations

from quayside.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
