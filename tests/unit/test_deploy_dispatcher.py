"""Unit tests for the deployment dispatcher."""

from __future__ import annotations

from pathlib import Path

import pytest

from quayside.config import DeployMode, OrchestratorConfig
from quayside.deploy import (
    ComposeTarget,
    DeployAction,
    DeploymentDispatcher,
    SwarmTarget,
    build_deployment_target,
)
from quayside.errors import DeployError
from tests.helpers.builders import make_entry
from tests.helpers.recording_runner import RecordingRunner

SWARM = SwarmTarget(
    registry_address="localhost:5000",
    image_tag="v2.0.0",
    stack_name="pingora",
    stack_file=Path("/compose/docker-stack.yml"),
)


class TestBuildDeploymentTarget:
    """Tests for build_deployment_target."""

    def test_compose_mode(self) -> None:
        """Compose mode targets the configured project."""
        target = build_deployment_target(OrchestratorConfig(), "v1")

        assert target == ComposeTarget(
            project_name="pingora-docker",
            compose_file=Path("/compose/docker-compose.yml"),
        )
        assert target.mode is DeployMode.COMPOSE

    def test_swarm_mode(self) -> None:
        """Swarm mode carries the registry, tag and stack."""
        config = OrchestratorConfig(deploy_mode=DeployMode.SWARM)

        target = build_deployment_target(config, "v2.0.0")

        assert target == SWARM
        assert target.mode is DeployMode.SWARM


class TestComposeDeploy:
    """Compose refreshes one service of a shared project."""

    def test_compose_up_single_service(self) -> None:
        """Only the named service is rebuilt, without its dependencies."""
        runner = RecordingRunner()
        target = ComposeTarget("pingora-docker", Path("/compose/docker-compose.yml"))

        result = DeploymentDispatcher(runner).deploy(make_entry("blog"), target)

        assert runner.commands == [
            (
                "docker",
                "compose",
                "-p",
                "pingora-docker",
                "-f",
                "/compose/docker-compose.yml",
                "up",
                "--no-deps",
                "--build",
                "-d",
                "blog",
            )
        ]
        assert result.action is DeployAction.COMPOSE_UP
        assert result.target_name == "pingora-docker"

    def test_compose_failure(self) -> None:
        """A rejected compose command raises DeployError with its output."""
        runner = RecordingRunner()
        runner.fail_on("docker", "compose", stderr="no such service: blog")
        target = ComposeTarget("pingora-docker", Path("/compose/docker-compose.yml"))

        with pytest.raises(DeployError, match="compose up failed") as excinfo:
            DeploymentDispatcher(runner).deploy(make_entry("blog"), target)

        assert "no such service" in excinfo.value.detail


class TestSwarmDeploy:
    """Swarm updates in place or deploys the stack."""

    def test_existing_service_is_updated(self) -> None:
        """A running service is moved to the latest image."""
        runner = RecordingRunner()

        result = DeploymentDispatcher(runner).deploy(make_entry("blog"), SWARM)

        assert runner.commands == [
            ("docker", "service", "inspect", "pingora_blog"),
            (
                "docker",
                "service",
                "update",
                "--with-registry-auth",
                "--image",
                "localhost:5000/blog:latest",
                "pingora_blog",
            ),
        ]
        assert result.action is DeployAction.SERVICE_UPDATE
        assert result.target_name == "pingora_blog"

    def test_missing_service_deploys_stack(self) -> None:
        """A first deployment goes through the stack descriptor."""
        runner = RecordingRunner()
        runner.fail_on("docker", "service", "inspect", stderr="no such service")

        result = DeploymentDispatcher(runner).deploy(make_entry("blog"), SWARM)

        assert runner.commands[-1] == (
            "docker",
            "stack",
            "deploy",
            "--with-registry-auth",
            "-c",
            "/compose/docker-stack.yml",
            "pingora",
        )
        assert result.action is DeployAction.STACK_DEPLOY
        assert not any(argv[1:3] == ("service", "update") for argv in runner.commands)

    def test_update_failure(self) -> None:
        """A failed service update raises DeployError."""
        runner = RecordingRunner()
        runner.fail_on("docker", "service", "update")

        with pytest.raises(DeployError, match="service update failed"):
            DeploymentDispatcher(runner).deploy(make_entry("blog"), SWARM)
