"""Unit tests for the external command runner."""

from __future__ import annotations

import sys
import typing as typ

import pytest

from quayside.errors import CommandTimeoutError, ExecutableNotFoundError
from quayside.process import CommandResult, CommandRunner

if typ.TYPE_CHECKING:
    from pathlib import Path


class TestCommandRunner:
    """Tests for CommandRunner.run."""

    def test_captures_output_and_exit_code(self, tmp_path: Path) -> None:
        """Non-zero exits are returned, not raised."""
        runner = CommandRunner(timeout=10)

        result = runner.run(
            [sys.executable, "-c", "import sys; print('out'); sys.exit(3)"],
            cwd=tmp_path,
        )

        assert result.returncode == 3
        assert not result.ok
        assert result.stdout.strip() == "out"
        assert result.argv[0] == sys.executable

    def test_missing_executable(self) -> None:
        """Unknown programs raise ExecutableNotFoundError."""
        runner = CommandRunner()

        with pytest.raises(ExecutableNotFoundError) as excinfo:
            runner.run(["quayside-no-such-binary", "--help"])

        assert excinfo.value.argv == ("quayside-no-such-binary", "--help")

    def test_timeout(self) -> None:
        """Commands exceeding the budget raise CommandTimeoutError."""
        runner = CommandRunner(timeout=10)

        with pytest.raises(CommandTimeoutError) as excinfo:
            runner.run(
                [sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2
            )

        assert excinfo.value.timeout == pytest.approx(0.2)

    def test_environment_override(self) -> None:
        """A runner-level environment replaces the inherited one."""
        runner = CommandRunner(env={"QUAYSIDE_PROBE": "yes", "PATH": ""})

        result = runner.run(
            [sys.executable, "-c", "import os; print(os.environ['QUAYSIDE_PROBE'])"]
        )

        assert result.stdout.strip() == "yes"


class TestCommandResult:
    """Tests for CommandResult helpers."""

    def test_output_prefers_stderr(self) -> None:
        """Diagnostics come from stderr when present."""
        result = CommandResult(("docker", "push"), 1, stdout="ok\n", stderr="denied\n")

        assert result.output == "denied"
        assert result.describe() == "$ docker push (exit 1)\ndenied"

    def test_describe_without_output(self) -> None:
        """A silent command renders just its command line."""
        result = CommandResult(("git", "fetch"), 0)

        assert result.describe() == "$ git fetch (exit 0)"
