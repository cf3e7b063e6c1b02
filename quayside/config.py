"""Runtime configuration for the orchestrator.

Configuration is read once from the environment and frozen for the lifetime
of a process. Defaults mirror the container layout the orchestrator ships
in: the registry at ``/config/services.json``, working copies under
``/repos`` and compose/stack descriptors under ``/compose``.

Usage
-----
>>> config = OrchestratorConfig()
>>> config.deploy_mode
<DeployMode.COMPOSE: 'compose'>

>>> import os
>>> os.environ["QUAYSIDE_DEPLOY_MODE"] = "swarm"
>>> OrchestratorConfig.from_env().deploy_mode
<DeployMode.SWARM: 'swarm'>

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os
from pathlib import Path

from quayside.errors import ConfigError

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"", "0", "false", "no", "off"})


class DeployMode(enum.StrEnum):
    """Runtime engine the dispatcher drives."""

    COMPOSE = "compose"
    SWARM = "swarm"


@dc.dataclass(frozen=True, slots=True)
class OrchestratorConfig:
    """Settings shared by every pipeline invocation in a process.

    Attributes
    ----------
    registry_path
        Service registry file (JSON or YAML).
    repos_dir
        Parent directory of per-service working copies.
    deploy_mode
        ``compose`` for single-host refreshes, ``swarm`` for registry-backed
        service updates.
    compose_file, compose_project
        Descriptor and project name used in compose mode.
    stack_file, stack_name
        Descriptor and stack name used in swarm mode.
    image_registry
        Registry address images are pushed to in swarm mode.
    command_timeout
        Upper bound in seconds for any single external command.
    init_services, build_on_init
        Run the bulk pass at startup, optionally deploying too.

    """

    registry_path: Path = Path("/config/services.json")
    repos_dir: Path = Path("/repos")
    deploy_mode: DeployMode = DeployMode.COMPOSE
    compose_file: Path = Path("/compose/docker-compose.yml")
    compose_project: str = "pingora-docker"
    stack_file: Path = Path("/compose/docker-stack.yml")
    stack_name: str = "pingora"
    image_registry: str = "localhost:5000"
    command_timeout: float = 900.0
    init_services: bool = False
    build_on_init: bool = False

    @staticmethod
    def _read(env_var: str, default: str) -> str:
        raw = os.environ.get(env_var, "")
        return raw.strip() or default

    @staticmethod
    def _parse_positive_int(env_var: str, default: int) -> int:
        """Read a positive integer env var, falling back to a default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ConfigError(msg) from exc
        if value < 1:
            msg = f"{env_var} must be positive, got: {value}"
            raise ConfigError(msg)
        return value

    @staticmethod
    def _parse_flag(env_var: str) -> bool:
        raw = os.environ.get(env_var, "").strip().lower()
        if raw in _TRUTHY:
            return True
        if raw in _FALSY:
            return False
        msg = f"{env_var} must be a boolean flag, got: {raw!r}"
        raise ConfigError(msg)

    @classmethod
    def from_env(cls) -> OrchestratorConfig:
        """Create configuration from ``QUAYSIDE_*`` environment variables.

        Raises
        ------
        ConfigError
            If a variable is present but cannot be parsed.

        """
        raw_mode = cls._read("QUAYSIDE_DEPLOY_MODE", DeployMode.COMPOSE).lower()
        try:
            deploy_mode = DeployMode(raw_mode)
        except ValueError as exc:
            msg = (
                "QUAYSIDE_DEPLOY_MODE must be 'compose' or 'swarm', "
                f"got: {raw_mode!r}"
            )
            raise ConfigError(msg) from exc

        return cls(
            registry_path=Path(
                cls._read("QUAYSIDE_REGISTRY_PATH", "/config/services.json")
            ),
            repos_dir=Path(cls._read("QUAYSIDE_REPOS_DIR", "/repos")),
            deploy_mode=deploy_mode,
            compose_file=Path(
                cls._read("QUAYSIDE_COMPOSE_FILE", "/compose/docker-compose.yml")
            ),
            compose_project=cls._read("QUAYSIDE_COMPOSE_PROJECT", "pingora-docker"),
            stack_file=Path(
                cls._read("QUAYSIDE_STACK_FILE", "/compose/docker-stack.yml")
            ),
            stack_name=cls._read("QUAYSIDE_STACK_NAME", "pingora"),
            image_registry=cls._read("QUAYSIDE_IMAGE_REGISTRY", "localhost:5000"),
            command_timeout=float(
                cls._parse_positive_int("QUAYSIDE_COMMAND_TIMEOUT", 900)
            ),
            init_services=cls._parse_flag("QUAYSIDE_INIT_SERVICES"),
            build_on_init=cls._parse_flag("QUAYSIDE_BUILD_ON_INIT"),
        )


__all__ = ["DeployMode", "OrchestratorConfig"]
