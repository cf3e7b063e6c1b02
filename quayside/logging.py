"""Logging setup and percent-style helpers on top of femtologging.

Every module logs through :func:`get_logger` and the ``log_*`` helpers, which
render the message before femtologging sees it. A process picks its level
once at startup, from ``QUAYSIDE_LOG_LEVEL``, with :func:`configure_from_env`.

Example:
>>> from quayside.logging import get_logger, log_info
>>> logger = get_logger(__name__)
>>> log_info(logger, "Synced %s to %s", "blog", "v2.0.0")

"""

from __future__ import annotations

import dataclasses
import os
import typing as typ

from femtologging import basicConfig, get_logger

LOG_LEVEL_ENV = "QUAYSIDE_LOG_LEVEL"
DEFAULT_LEVEL = "INFO"

_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


class SupportsLog(typ.Protocol):
    """The part of a femtologging logger the helpers rely on."""

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str | None: ...


@dataclasses.dataclass(frozen=True, slots=True)
class LoggingSetup:
    """Level a process ended up logging at.

    ``requested`` is the raw environment value, kept so an unusable setting
    can be reported once logging works.
    """

    level: str
    requested: str | None
    invalid: bool


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return ``(level, invalid)`` for a raw level name.

    Case and surrounding whitespace are ignored and ``WARN``/``FATAL`` are
    accepted as aliases. An unset or blank value selects ``INFO`` silently;
    an unknown name selects ``INFO`` with ``invalid`` set.

    Parameters
    ----------
    level : str | None
        Raw level, usually read from the environment.

    """
    normalized = (level or "").strip().upper()
    if not normalized:
        return (DEFAULT_LEVEL, False)
    normalized = _ALIASES.get(normalized, normalized)
    if normalized in _LEVELS:
        return (normalized, False)
    return (DEFAULT_LEVEL, True)


def configure_logging(level: str | None, *, force: bool = False) -> tuple[str, bool]:
    """Configure femtologging at ``level`` and return the normalized level."""
    normalized, invalid = normalize_log_level(level)
    basicConfig(level=normalized, force=force)
    return (normalized, invalid)


def configure_from_env(*, force: bool = False) -> LoggingSetup:
    """Configure logging from ``QUAYSIDE_LOG_LEVEL``.

    An unknown level is logged as a warning after falling back to ``INFO``.
    """
    requested = os.environ.get(LOG_LEVEL_ENV)
    level, invalid = configure_logging(requested, force=force)
    if invalid:
        log_warning(
            get_logger(__name__),
            "Invalid %s %r, falling back to %s",
            LOG_LEVEL_ENV,
            requested,
            level,
        )
    return LoggingSetup(level=level, requested=requested, invalid=invalid)


def log_at(
    logger: SupportsLog,
    level: str,
    template: str,
    *args: object,
    exc_info: object | None = None,
) -> None:
    """Render ``template % args`` and emit it at ``level``."""
    logger.log(level, template % args, exc_info=exc_info, stack_info=False)


def log_debug(
    logger: SupportsLog, template: str, *args: object, exc_info: object = None
) -> None:
    """Emit a DEBUG message."""
    log_at(logger, "DEBUG", template, *args, exc_info=exc_info)


def log_info(
    logger: SupportsLog, template: str, *args: object, exc_info: object = None
) -> None:
    """Emit an INFO message.

    Parameters
    ----------
    logger : SupportsLog
        Destination logger.
    template : str
        Percent-style template, rendered with ``args``.
    *args : object
        Values for the template placeholders.
    exc_info : object, optional
        Exception to attach to the record.

    """
    log_at(logger, "INFO", template, *args, exc_info=exc_info)


def log_warning(
    logger: SupportsLog, template: str, *args: object, exc_info: object = None
) -> None:
    """Emit a WARNING message."""
    log_at(logger, "WARNING", template, *args, exc_info=exc_info)


def log_error(
    logger: SupportsLog, template: str, *args: object, exc_info: object = None
) -> None:
    """Emit an ERROR message."""
    log_at(logger, "ERROR", template, *args, exc_info=exc_info)


__all__ = [
    "DEFAULT_LEVEL",
    "LOG_LEVEL_ENV",
    "LoggingSetup",
    "SupportsLog",
    "configure_from_env",
    "configure_logging",
    "get_logger",
    "log_at",
    "log_debug",
    "log_error",
    "log_info",
    "log_warning",
    "normalize_log_level",
]
