"""Pytest fixtures for ratemirror tests."""

import logging
from typing import Generator

import pytest
import structlog

from ratemirror.connectivity.monitor import ConnectivityMonitor
from ratemirror.core.errors.classifier import ErrorClassifier
from ratemirror.diagnostics.log import DiagnosticLog
from ratemirror.handler import ErrorHandler

from tests.helpers import FakeClock, FakeProbeTransport


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset structlog and root handlers around each test for isolation."""
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeProbeTransport:
    return FakeProbeTransport(True)


@pytest.fixture
def monitor(transport: FakeProbeTransport, clock: FakeClock) -> ConnectivityMonitor:
    return ConnectivityMonitor(transport, clock=clock)


@pytest.fixture
def diagnostic_log(clock: FakeClock, monitor: ConnectivityMonitor) -> DiagnosticLog:
    return DiagnosticLog(clock=clock, offline_source=monitor.is_offline)


@pytest.fixture
def classifier(diagnostic_log: DiagnosticLog, monitor: ConnectivityMonitor) -> ErrorClassifier:
    return ErrorClassifier(log=diagnostic_log, monitor=monitor)


@pytest.fixture
def handler(transport: FakeProbeTransport, clock: FakeClock) -> ErrorHandler:
    return ErrorHandler(transport=transport, clock=clock)
