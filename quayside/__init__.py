"""Quayside keeps containerised services in step with their git repositories.

Push events and a bulk startup pass drive one pipeline per service: route
the event to a registry entry, sync the working copy to the right ref,
build and publish an image (swarm only), then redeploy.
"""

from __future__ import annotations

__version__ = "0.1.0"
