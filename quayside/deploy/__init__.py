"""Redeploy services on compose or swarm."""

from __future__ import annotations

from .dispatcher import DeploymentDispatcher
from .models import (
    ComposeTarget,
    DeployAction,
    DeploymentTarget,
    DeployResult,
    SwarmTarget,
    build_deployment_target,
)

__all__ = [
    "ComposeTarget",
    "DeployAction",
    "DeployResult",
    "DeploymentDispatcher",
    "DeploymentTarget",
    "SwarmTarget",
    "build_deployment_target",
]
