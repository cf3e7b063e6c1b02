"""Typed wrappers around external process invocation.

Every call to git or docker goes through :class:`CommandRunner`, which
returns a :class:`CommandResult` holding the exit code and captured output
instead of raising on non-zero exit. Components inspect the result and raise
their own error type, so the mapping from exit status to the error taxonomy
happens in one place per component rather than through ``check=True``.

Two conditions are raised here because no component can interpret them: a
missing executable and an expired timeout.

Examples
--------
Run a command with a bounded runtime:

    runner = CommandRunner(timeout=60)
    result = runner.run(["git", "rev-parse", "HEAD"], cwd=Path("/repos/blog"))
    if result.ok:
        print(result.stdout.strip())

"""

from __future__ import annotations

import dataclasses
import shutil
import subprocess
import typing as typ

from quayside.errors import (
    CommandError,
    CommandTimeoutError,
    ExecutableNotFoundError,
)
from quayside.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 900.0


@dataclasses.dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Return True when the command exited with status 0."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Return stderr when present, otherwise stdout, stripped."""
        return (self.stderr or self.stdout).strip()

    def describe(self) -> str:
        """Render the command and its diagnostic output for error messages."""
        text = f"$ {' '.join(self.argv)} (exit {self.returncode})"
        if self.output:
            text = f"{text}\n{self.output}"
        return text


class SupportsRun(typ.Protocol):
    """Anything that can run a command and report a :class:`CommandResult`."""

    def run(
        self,
        argv: cabc.Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult: ...


class CommandRunner:
    """Run commands with ``shell=False``, captured output and a timeout."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        env: cabc.Mapping[str, str] | None = None,
    ) -> None:
        """Configure the default timeout and optional environment override."""
        self.timeout = timeout
        self._env = dict(env) if env is not None else None

    def run(
        self,
        argv: cabc.Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        """Run ``argv`` and return its result.

        Parameters
        ----------
        argv
            Command and arguments; the first element is resolved on ``PATH``.
        cwd
            Working directory for the command.
        timeout
            Per-call override of the runner's default timeout, in seconds.

        Raises
        ------
        ExecutableNotFoundError
            If ``argv[0]`` is not on ``PATH``.
        CommandTimeoutError
            If the command does not finish within the timeout.
        CommandError
            If the operating system refuses to start the process.

        """
        args = [str(part) for part in argv]
        executable = shutil.which(args[0])
        if executable is None:
            raise ExecutableNotFoundError(args, "executable not found on PATH")

        budget = timeout if timeout is not None else self.timeout
        log_debug(logger, "Running %s (cwd=%s)", " ".join(args), cwd or ".")
        try:
            completed = subprocess.run(  # noqa: S603  # argv list, shell=False
                [executable, *args[1:]],
                cwd=cwd,
                env=self._env,
                capture_output=True,
                text=True,
                check=False,
                timeout=budget,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeoutError(args, budget) from exc
        except OSError as exc:
            raise CommandError(args, str(exc)) from exc

        return CommandResult(
            argv=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


__all__ = ["DEFAULT_TIMEOUT", "CommandResult", "CommandRunner", "SupportsRun"]
