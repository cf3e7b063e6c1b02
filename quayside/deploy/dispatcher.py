"""Issue redeploys against compose or swarm.

Compose mode refreshes one service of a shared project and leaves every
other service alone (``--no-deps``); compose builds straight from the synced
working copy.

Swarm mode decides between update and create by probing the running
service: when ``<stack>_<service>`` exists it is updated in place to the
freshly pushed ``latest`` image, otherwise the whole stack is deployed from
its descriptor, which creates the service. No "first deploy" flag is kept;
the running service is the flag.
"""

from __future__ import annotations

import typing as typ

from quayside.errors import DeployError
from quayside.logging import get_logger, log_info

from .models import ComposeTarget, DeployAction, DeployResult, SwarmTarget

if typ.TYPE_CHECKING:
    from quayside.process import CommandResult, SupportsRun
    from quayside.registry.models import ServiceEntry

    from .models import DeploymentTarget

logger = get_logger(__name__)


class DeploymentDispatcher:
    """Redeploy a service on its configured runtime engine."""

    def __init__(self, runner: SupportsRun, *, executable: str = "docker") -> None:
        """Bind the dispatcher to a command runner."""
        self._runner = runner
        self._docker = executable

    def deploy(self, entry: ServiceEntry, target: DeploymentTarget) -> DeployResult:
        """Redeploy ``entry`` on ``target``.

        Raises
        ------
        DeployError
            If the runtime engine rejects the command.

        """
        match target:
            case ComposeTarget():
                return self._compose_up(entry, target)
            case SwarmTarget():
                return self._swarm_deploy(entry, target)

    def service_exists(self, name: str) -> bool:
        """Return True when swarm reports a service called ``name``."""
        return self._runner.run([self._docker, "service", "inspect", name]).ok

    def _compose_up(self, entry: ServiceEntry, target: ComposeTarget) -> DeployResult:
        result = self._runner.run(
            [
                self._docker,
                "compose",
                "-p",
                target.project_name,
                "-f",
                str(target.compose_file),
                "up",
                "--no-deps",
                "--build",
                "-d",
                entry.name,
            ]
        )
        self._expect(entry, "compose up", result)
        log_info(
            logger,
            "Rebuilt %s in compose project %s",
            entry.name,
            target.project_name,
        )
        return DeployResult(
            service=entry.name,
            action=DeployAction.COMPOSE_UP,
            target_name=target.project_name,
        )

    def _swarm_deploy(self, entry: ServiceEntry, target: SwarmTarget) -> DeployResult:
        service_name = target.swarm_service_name(entry.name)
        if self.service_exists(service_name):
            image = target.latest_image(entry.name)
            result = self._runner.run(
                [
                    self._docker,
                    "service",
                    "update",
                    "--with-registry-auth",
                    "--image",
                    image,
                    service_name,
                ]
            )
            self._expect(entry, "service update", result)
            log_info(logger, "Updated swarm service %s to %s", service_name, image)
            return DeployResult(
                service=entry.name,
                action=DeployAction.SERVICE_UPDATE,
                target_name=service_name,
            )

        log_info(
            logger,
            "Service %s not found; deploying stack %s",
            service_name,
            target.stack_name,
        )
        result = self._runner.run(
            [
                self._docker,
                "stack",
                "deploy",
                "--with-registry-auth",
                "-c",
                str(target.stack_file),
                target.stack_name,
            ]
        )
        self._expect(entry, "stack deploy", result)
        return DeployResult(
            service=entry.name,
            action=DeployAction.STACK_DEPLOY,
            target_name=target.stack_name,
        )

    @staticmethod
    def _expect(entry: ServiceEntry, step: str, result: CommandResult) -> None:
        if not result.ok:
            raise DeployError(entry.name, f"{step} failed", detail=result.describe())
