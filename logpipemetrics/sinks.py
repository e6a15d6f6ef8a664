"""Prometheus counters that accumulate request and byte totals."""

import logging
from typing import Dict, List, Optional, Sequence

from prometheus_client import CollectorRegistry, Counter, disable_created_metrics

NAMESPACE = "section"
SUBSYSTEM = "http"
HOSTNAME_LABEL = "hostname"


def _child(counter: Counter, labelnames: Sequence[str], labels: Dict[str, str]):
    """Resolve the counter child for labels, projected onto the counter's label names."""
    if not labelnames:
        return counter
    return counter.labels(**{name: labels.get(name, "") for name in labelnames})


class PrometheusSink:
    """Counter vectors keyed by label set, registered on a private registry."""

    def __init__(
        self,
        request_labels: Sequence[str],
        byte_labels: Sequence[str],
        include_hostname_metrics: bool = False,
        registry: Optional[CollectorRegistry] = None,
    ):
        """Create the counters.

        Args:
            request_labels: Label names of the request counter
            byte_labels: Label names of the byte counter
            include_hostname_metrics: Also create the by-hostname counters
            registry: Registry to register on, a new one by default
        """
        self.request_labels: List[str] = sorted(request_labels)
        self.byte_labels: List[str] = sorted(byte_labels)
        self.include_hostname_metrics = include_hostname_metrics
        self.registry = registry or CollectorRegistry()
        self.logger = logging.getLogger(self.__class__.__name__)

        # One sample per label set; no companion _created series.
        disable_created_metrics()

        self.requests_total = Counter(
            "request_count",
            "Total count of HTTP requests.",
            self.request_labels,
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )
        self.bytes_total = Counter(
            "bytes",
            "Total sum of response bytes.",
            self.byte_labels,
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )
        self.page_view_total = Counter(
            "page_view",
            "Legacy: Total count of page views.",
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )
        self.json_parse_errors_total = Counter(
            "json_parse_errors",
            "Total count of JSON parsing errors.",
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )

        self.requests_by_hostname_total = None
        self.bytes_by_hostname_total = None
        if include_hostname_metrics:
            self.requests_by_hostname_total = Counter(
                "request_count_by_hostname",
                "Total count of HTTP requests by hostname.",
                [HOSTNAME_LABEL],
                namespace=NAMESPACE,
                subsystem=SUBSYSTEM,
                registry=self.registry,
            )
            self.bytes_by_hostname_total = Counter(
                "bytes_by_hostname",
                "Total sum of response bytes by hostname.",
                [HOSTNAME_LABEL],
                namespace=NAMESPACE,
                subsystem=SUBSYSTEM,
                registry=self.registry,
            )

        self.logger.debug(
            f"Initialized counters with request labels {self.request_labels} "
            f"and byte labels {self.byte_labels}"
        )

    def add_request(self, labels: Dict[str, str]) -> None:
        _child(self.requests_total, self.request_labels, labels).inc()

    def add_bytes(self, labels: Dict[str, str], size: int) -> None:
        _child(self.bytes_total, self.byte_labels, labels).inc(size)

    def add_hostname_request(self, hostname: str, size: int) -> None:
        """Count a request and its bytes against the by-hostname counters."""
        if not self.include_hostname_metrics:
            return
        self.requests_by_hostname_total.labels(hostname=hostname).inc()
        self.bytes_by_hostname_total.labels(hostname=hostname).inc(size)

    def add_page_view(self) -> None:
        self.page_view_total.inc()

    def add_json_parse_error(self) -> None:
        self.json_parse_errors_total.inc()
