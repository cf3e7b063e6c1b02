"""Unit tests for the femtologging helpers.

Run with:
    pytest tests/unit/test_logging.py
"""

from __future__ import annotations

import pytest

from quayside import logging as quayside_logging
from quayside.logging import (
    LoggingSetup,
    configure_from_env,
    configure_logging,
    log_at,
    log_debug,
    log_error,
    log_info,
    log_warning,
    normalize_log_level,
)


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None, bool]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info, stack_info))
        return message


@pytest.fixture
def basic_config_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, object]]:
    """Replace femtologging's basicConfig with a recorder."""
    calls: list[dict[str, object]] = []

    def fake_basic_config(**kwargs: object) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(quayside_logging, "basicConfig", fake_basic_config)
    return calls


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("warning", ("WARNING", False)),
        (" debug ", ("DEBUG", False)),
        ("TRACE", ("TRACE", False)),
        ("warn", ("WARNING", False)),
        ("Fatal", ("CRITICAL", False)),
        (None, ("INFO", False)),
        ("  ", ("INFO", False)),
        ("verbose", ("INFO", True)),
    ],
)
def test_normalize_log_level(raw: str | None, expected: tuple[str, bool]) -> None:
    """Names are case-insensitive, aliases resolve, unknown names fall back."""
    assert normalize_log_level(raw) == expected, f"unexpected result for {raw!r}"


@pytest.mark.parametrize(
    ("helper", "level"),
    [
        (log_debug, "DEBUG"),
        (log_info, "INFO"),
        (log_warning, "WARNING"),
        (log_error, "ERROR"),
    ],
)
def test_helpers_format_and_pass_level(helper: object, level: str) -> None:
    """Each helper applies percent formatting and its own level."""
    logger = _FakeLogger()

    helper(logger, "synced %s to %s", "blog", "v2.0.0")  # type: ignore[operator]

    assert logger.calls == [(level, "synced blog to v2.0.0", None, False)], (
        f"Expected one {level} entry with the formatted message."
    )


def test_log_at_forwards_exc_info() -> None:
    """The attached exception reaches the logger untouched."""
    logger = _FakeLogger()
    exc = ValueError("boom")

    log_at(logger, "ERROR", "deploy of %s failed", "blog", exc_info=exc)

    assert logger.calls == [("ERROR", "deploy of blog failed", exc, False)]


def test_configure_logging_passes_level(
    basic_config_calls: list[dict[str, object]],
) -> None:
    """configure_logging hands the normalized level to femtologging."""
    assert configure_logging("nope") == ("INFO", True)
    assert basic_config_calls == [{"level": "INFO", "force": False}]


class TestConfigureFromEnv:
    """Tests for reading QUAYSIDE_LOG_LEVEL."""

    def test_uses_environment_level(
        self,
        monkeypatch: pytest.MonkeyPatch,
        basic_config_calls: list[dict[str, object]],
    ) -> None:
        """A valid level is applied as given."""
        monkeypatch.setenv("QUAYSIDE_LOG_LEVEL", "debug")

        setup = configure_from_env()

        assert setup == LoggingSetup(level="DEBUG", requested="debug", invalid=False)
        assert basic_config_calls == [{"level": "DEBUG", "force": False}]

    def test_defaults_to_info_when_unset(
        self,
        monkeypatch: pytest.MonkeyPatch,
        basic_config_calls: list[dict[str, object]],
    ) -> None:
        """No variable means INFO without a warning."""
        monkeypatch.delenv("QUAYSIDE_LOG_LEVEL", raising=False)

        setup = configure_from_env()

        assert setup.level == "INFO"
        assert setup.invalid is False
        assert basic_config_calls[0]["level"] == "INFO"

    def test_flags_unknown_level(
        self,
        monkeypatch: pytest.MonkeyPatch,
        basic_config_calls: list[dict[str, object]],
    ) -> None:
        """An unknown level falls back to INFO and is flagged."""
        monkeypatch.setenv("QUAYSIDE_LOG_LEVEL", "chatty")

        setup = configure_from_env()

        assert setup.invalid is True, "expected the level to be flagged"
        assert setup.level == "INFO"
        assert setup.requested == "chatty"
