"""Metrics session: label configuration, counters and setup entry points."""

import logging
import sys
import threading
from typing import BinaryIO, Callable, Iterable, List, Optional, TextIO

from prometheus_client import CollectorRegistry

from .cardinality import DEFAULT_MAX_HOSTNAMES, HostnameGuard
from .config import MetricsConfig
from .geo import GEO_HASH_LABEL, GeoHasher
from .monitors.fifo import FifoMonitor
from .processor import HEALTHCHECK_LABEL, LineProcessor
from .sanitizers import HOSTNAME_LABEL, sanitize_label_name
from .server import DEFAULT_METRICS_PATH, DEFAULT_METRICS_PORT, ExpositionServer
from .sinks import PrometheusSink
from .utils import create_log_fifo, open_read_fifo, open_write_fifo

Logf = Callable[..., None]


class MetricsSession:
    """Everything one configured label set needs to count log lines.

    Building a new session resets every counter and the hostname set.
    """

    def __init__(
        self,
        labels: Iterable[str] = (),
        max_hostnames: int = DEFAULT_MAX_HOSTNAMES,
        geo_hash_precision: Optional[int] = None,
    ):
        """Initialize the session.

        Args:
            labels: Log field names to extract as labels, in order
            max_hostnames: Distinct hostnames admitted before the sentinel is used
            geo_hash_precision: Enables the geo_hash label when set; values
                outside 1-12 use the default precision
        """
        self.log_field_names: List[str] = list(labels)
        self.fields = [(name, sanitize_label_name(name)) for name in self.log_field_names]

        # With a hostname label the by-hostname counters carry it, so it is
        # removed from the general counters to bound their cardinality.
        label_names = [label for _, label in self.fields]
        self.include_hostname_metrics = HOSTNAME_LABEL in label_names
        self.sanitized_labels = [label for label in label_names if label != HOSTNAME_LABEL]

        self.geo_hasher = None
        self.with_geo_label = list(self.sanitized_labels)
        if geo_hash_precision is not None:
            self.geo_hasher = GeoHasher(geo_hash_precision)
            self.with_geo_label.append(GEO_HASH_LABEL)

        self.request_labels = self.sanitized_labels + [HEALTHCHECK_LABEL]
        if self.geo_hasher:
            self.request_labels.append(GEO_HASH_LABEL)

        self.guard = HostnameGuard(max_hostnames)
        self.sink = PrometheusSink(
            self.request_labels,
            self.sanitized_labels,
            include_hostname_metrics=self.include_hostname_metrics,
        )
        self.server: Optional[ExpositionServer] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_config(cls, config: MetricsConfig) -> "MetricsSession":
        return cls(
            config.labels,
            max_hostnames=config.max_hostnames,
            geo_hash_precision=config.geo_hash_precision,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Registry holding the counters; further metrics may be registered on it."""
        return self.sink.registry

    def processor(self, output: TextIO, errors: TextIO) -> LineProcessor:
        return LineProcessor(
            self.fields,
            self.sink,
            output,
            errors,
            guard=self.guard if self.include_hostname_metrics else None,
            geo_hasher=self.geo_hasher,
        )

    def show_labels(self, log: Logf) -> None:
        """Report the effective labels through a printf-style log function."""
        log("[INFO] logFieldNames %s", self.log_field_names)
        log("[INFO] sanitizedP8sLabels %s", self.sanitized_labels)
        log("[INFO] withGeoLabel %s", self.with_geo_label)
        log("[INFO] requestLabels %s", self.request_labels)

    def start_server(
        self,
        path: str = DEFAULT_METRICS_PATH,
        port: int = DEFAULT_METRICS_PORT,
        stderr: Optional[TextIO] = None,
    ) -> ExpositionServer:
        """Serve this session's registry, replacing a server it started before."""
        if self.server is not None:
            self.server.stop()
        self.server = ExpositionServer(self.registry, path=path, port=port)
        self.server.start(stderr)
        return self.server


class MetricsModule:
    """A running pipe reader bound to a session and its metrics server."""

    def __init__(
        self,
        session: MetricsSession,
        monitor: FifoMonitor,
        keepalive: Optional[BinaryIO] = None,
    ):
        self.session = session
        self.monitor = monitor
        self.keepalive = keepalive
        self.thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def registry(self) -> CollectorRegistry:
        return self.session.registry

    @property
    def alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self) -> None:
        """Run the monitor in a daemon thread."""
        self.thread = threading.Thread(
            target=self.monitor.start, name=f"reader-{self.monitor.name}", daemon=True
        )
        self.thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        """Stop the reader, release the pipe and shut the server down."""
        self.monitor.stop()
        if self.thread is not None:
            self.thread.join(timeout=timeout)
        if self.keepalive is not None:
            self.keepalive.close()
            self.keepalive = None
        if self.session.server is not None:
            self.session.server.stop()


def setup_module(
    path: str,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    labels: Iterable[str] = (),
    geo_hash_precision: Optional[int] = None,
    max_hostnames: int = DEFAULT_MAX_HOSTNAMES,
    metrics_path: str = DEFAULT_METRICS_PATH,
    metrics_port: int = DEFAULT_METRICS_PORT,
) -> MetricsModule:
    """Create and open the pipe, start the metrics server and the reader.

    Args:
        path: Filesystem path of the log pipe, replaced if it exists
        stdout: Stream raw lines are copied to, sys.stdout by default
        stderr: Stream diagnostics are written to, sys.stderr by default
        labels: Log field names to extract as labels
        geo_hash_precision: Enables the geo_hash label when set
        max_hostnames: Distinct hostnames admitted before the sentinel is used
        metrics_path: HTTP path of the metrics endpoint
        metrics_port: HTTP port of the metrics endpoint

    Returns:
        MetricsModule: The started module

    Raises:
        FifoError: If the pipe cannot be created or opened
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    create_log_fifo(path)
    reader = open_read_fifo(path)
    keepalive = open_write_fifo(path)

    session = MetricsSession(
        labels, max_hostnames=max_hostnames, geo_hash_precision=geo_hash_precision
    )
    session.start_server(metrics_path, metrics_port, stderr)

    monitor = FifoMonitor(path, session.processor(stdout, stderr), reader=reader)
    module = MetricsModule(session, monitor, keepalive)
    module.start()
    return module


def setup_with_geo_hash(
    path: str,
    stdout: Optional[TextIO],
    stderr: Optional[TextIO],
    precision: int,
    labels: Iterable[str] = (),
    **kwargs,
) -> MetricsModule:
    """Set up the module with the geo_hash label at the given precision."""
    return setup_module(
        path, stdout, stderr, labels, geo_hash_precision=precision, **kwargs
    )
