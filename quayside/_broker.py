"""Choose the Dramatiq broker pipeline jobs travel through.

``QUAYSIDE_BROKER_URL`` selects a RabbitMQ broker (install the ``rabbitmq``
extra). Without it, jobs can only run on an in-memory
:class:`~dramatiq.brokers.stub.StubBroker`, which is allowed under pytest
or when ``QUAYSIDE_ALLOW_STUB_BROKER`` is set; a stub broker never delivers
messages to a separate worker process.
"""

from __future__ import annotations

import os
import sys
import threading
import typing as typ

import dramatiq
from dramatiq.brokers.stub import StubBroker

from quayside.errors import ConfigError
from quayside.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from dramatiq.broker import Broker

BROKER_URL_ENV = "QUAYSIDE_BROKER_URL"
ALLOW_STUB_ENV = "QUAYSIDE_ALLOW_STUB_BROKER"
_PYTEST_MARKERS = ("PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER")

logger = get_logger(__name__)

_lock = threading.Lock()
_installed: Broker | None = None


def _stub_allowed() -> bool:
    if os.environ.get(ALLOW_STUB_ENV, "").strip().lower() in {"1", "true", "yes"}:
        return True
    return "pytest" in sys.modules or any(key in os.environ for key in _PYTEST_MARKERS)


def _build_broker() -> Broker:
    url = os.environ.get(BROKER_URL_ENV, "").strip()
    if url:
        try:
            from dramatiq.brokers.rabbitmq import RabbitmqBroker
        except ImportError as exc:
            msg = f"{BROKER_URL_ENV} is set but the rabbitmq extra is not installed"
            raise ConfigError(msg) from exc
        log_info(logger, "Using RabbitMQ broker from %s", BROKER_URL_ENV)
        return RabbitmqBroker(url=url)

    if _stub_allowed():
        log_warning(logger, "Using in-memory stub broker; jobs stay in-process")
        return StubBroker()

    msg = f"No job broker configured: set {BROKER_URL_ENV} or {ALLOW_STUB_ENV}=1"
    raise ConfigError(msg)


def ensure_broker_configured() -> Broker:
    """Install the process-wide broker once and return it.

    Safe to call from several threads; later calls return the broker the
    first call installed.

    Raises
    ------
    ConfigError
        If no broker URL is set and a stub broker is not allowed, or the URL
        is set without the RabbitMQ client installed.

    """
    global _installed  # noqa: PLW0603

    with _lock:
        if _installed is None:
            broker = _build_broker()
            dramatiq.set_broker(broker)
            _installed = broker
        return _installed
