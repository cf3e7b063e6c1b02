"""Exception hierarchy shared across the orchestrator.

Every failure a pipeline step can raise derives from :class:`QuaysideError`
so callers (the CLI, Dramatiq actors, the bulk pass) can isolate failures
per service without catching unrelated programming errors.

A route miss is deliberately absent: an event that matches no service is a
successful no-op, see :mod:`quayside.routing`.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class QuaysideError(Exception):
    """Base class for orchestrator errors."""


class ConfigError(QuaysideError):
    """Raised when configuration is missing or invalid."""


class RegistryConfigError(ConfigError):
    """Raised when the service registry cannot be loaded.

    Attributes
    ----------
    issues
        Every problem found while loading, in discovery order.

    """

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        self.issues = issues
        super().__init__("\n".join(issues))


class CommandError(QuaysideError):
    """Raised when an external command cannot be run to completion."""

    def __init__(self, argv: cabc.Sequence[str], reason: str) -> None:
        """Initialise with the command line and failure reason."""
        self.argv = tuple(argv)
        self.reason = reason
        super().__init__(f"{self.argv[0] if self.argv else '<empty>'}: {reason}")


class ExecutableNotFoundError(CommandError):
    """Required CLI tool is not installed."""


class CommandTimeoutError(CommandError):
    """An external command exceeded its time budget."""

    def __init__(self, argv: cabc.Sequence[str], timeout: float) -> None:
        """Initialise with the command line and the expired timeout."""
        self.timeout = timeout
        super().__init__(argv, f"timed out after {timeout:g}s")


class _StepError(QuaysideError):
    """Common shape for failures of a single pipeline step."""

    def __init__(self, service: str, reason: str, *, detail: str = "") -> None:
        self.service = service
        self.reason = reason
        self.detail = detail
        message = f"{service}: {reason}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)


class SyncError(_StepError):
    """Raised when a working copy cannot be brought to its target ref."""


class SyncNetworkError(SyncError):
    """Raised when clone or fetch fails against the remote."""


class RefNotFoundError(SyncError):
    """Raised when the requested ref does not exist in the working copy."""

    def __init__(self, service: str, ref: str) -> None:
        """Initialise with the service and the missing ref name."""
        self.ref = ref
        super().__init__(service, f"ref not found: {ref}")


class BuildError(_StepError):
    """Raised when an image cannot be built or published."""


class ImageBuildError(BuildError):
    """Raised when ``docker build`` exits non-zero."""


class ImagePushError(BuildError):
    """Raised when pushing any image tag fails."""


class DeployError(_StepError):
    """Raised when the runtime engine rejects a redeploy."""


__all__ = [
    "BuildError",
    "CommandError",
    "CommandTimeoutError",
    "ConfigError",
    "DeployError",
    "ExecutableNotFoundError",
    "ImageBuildError",
    "ImagePushError",
    "QuaysideError",
    "RefNotFoundError",
    "RegistryConfigError",
    "SyncError",
    "SyncNetworkError",
]
