"""Shared test fixtures for all test modules."""

import io
import threading
from pathlib import Path

import pytest

from logpipemetrics.session import MetricsSession


@pytest.fixture
def fifo_path(tmp_path: Path) -> str:
    """Provide a path for a named pipe inside a temporary directory."""
    return str(tmp_path / "access-log.fifo")


@pytest.fixture
def streams():
    """Provide (output, errors) in-memory text streams."""
    return io.StringIO(), io.StringIO()


@pytest.fixture
def make_session(streams):
    """Factory fixture returning (session, processor) for the given labels.

    Usage:
        def test_something(make_session):
            session, processor = make_session("status", "hostname")
            processor.process(line)
    """
    output, errors = streams

    def _make(*labels: str, **kwargs):
        session = MetricsSession(labels, **kwargs)
        return session, session.processor(output, errors)

    return _make


@pytest.fixture
def run_monitor():
    """Run monitors on daemon threads, stopping them after the test."""
    started = []

    def _run(monitor):
        thread = threading.Thread(target=monitor.start, daemon=True)
        thread.start()
        started.append((monitor, thread))
        return thread

    yield _run

    for monitor, thread in started:
        monitor.stop()
        thread.join(timeout=2.0)
