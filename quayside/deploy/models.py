"""Deployment targets and results."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from quayside.config import DeployMode
from quayside.images import LATEST_TAG, image_reference

if typ.TYPE_CHECKING:
    from pathlib import Path

    from quayside.config import OrchestratorConfig


@dataclasses.dataclass(frozen=True, slots=True)
class ComposeTarget:
    """Single-host compose project the service belongs to."""

    project_name: str
    compose_file: Path

    @property
    def mode(self) -> DeployMode:
        """Return :attr:`DeployMode.COMPOSE`."""
        return DeployMode.COMPOSE


@dataclasses.dataclass(frozen=True, slots=True)
class SwarmTarget:
    """Swarm stack whose services pull from a private registry.

    Attributes
    ----------
    registry_address
        Registry the image was pushed to.
    image_tag
        Versioned tag of the freshly published image; ``latest`` is always
        pushed alongside it.
    stack_name
        Stack that owns the service; swarm names it ``<stack>_<service>``.
    stack_file
        Stack descriptor deployed when the service does not exist yet.

    """

    registry_address: str
    image_tag: str
    stack_name: str
    stack_file: Path

    @property
    def mode(self) -> DeployMode:
        """Return :attr:`DeployMode.SWARM`."""
        return DeployMode.SWARM

    def swarm_service_name(self, service: str) -> str:
        """Return the swarm service name for ``service`` in this stack."""
        return f"{self.stack_name}_{service}"

    def latest_image(self, service: str) -> str:
        """Return the ``latest`` image reference for ``service``."""
        return image_reference(self.registry_address, service, LATEST_TAG)


type DeploymentTarget = ComposeTarget | SwarmTarget


def build_deployment_target(
    config: OrchestratorConfig, image_tag: str
) -> DeploymentTarget:
    """Derive the deployment target for the configured runtime mode."""
    if config.deploy_mode is DeployMode.SWARM:
        return SwarmTarget(
            registry_address=config.image_registry,
            image_tag=image_tag,
            stack_name=config.stack_name,
            stack_file=config.stack_file,
        )
    return ComposeTarget(
        project_name=config.compose_project,
        compose_file=config.compose_file,
    )


class DeployAction(enum.StrEnum):
    """Which runtime command a deploy issued."""

    COMPOSE_UP = "compose-up"
    SERVICE_UPDATE = "service-update"
    STACK_DEPLOY = "stack-deploy"


@dataclasses.dataclass(frozen=True, slots=True)
class DeployResult:
    """Outcome of a successful deploy."""

    service: str
    action: DeployAction
    target_name: str
