"""Helpers shared by the test modules."""

import json
import time
from typing import Callable, Iterable, List

from prometheus_client import CollectorRegistry, generate_latest


def gather(registry: CollectorRegistry) -> str:
    """Render a registry in the Prometheus text exposition format."""
    return generate_latest(registry).decode("utf-8")


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll until predicate holds or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def log_line(**fields) -> str:
    """Build one JSON access-log line with a trailing newline."""
    return json.dumps(fields) + "\n"


def feed(processor, lines: Iterable[str]) -> None:
    for line in lines:
        processor.process(line)


# Seven lines for www.example.com (5875 bytes), three for other hosts (1074 bytes).
ACCESS_LOGS: List[str] = [
    log_line(hostname="www.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="foo.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="www.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="www.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="www.example.com", status="200", content_type="application/javascript", bytes_sent="3541"),
    log_line(hostname="foo.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="www.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="www.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="bar.example.com", status="304", content_type="text/html", bytes_sent="358"),
    log_line(hostname="www.example.com", status="200", content_type="application/javascript", bytes_sent="544"),
]
