"""Per-line orchestration: decode, label, and count one access-log line."""

import logging
from typing import List, Optional, TextIO, Tuple

from .cardinality import HostnameGuard
from .extractors import RecordExtractor, extract_bytes
from .geo import GeoHasher, scrub_geo_hash
from .models import LogRecord, LogRecordError
from .sanitizers import HOSTNAME_LABEL, sanitize_label_value
from .sinks import PrometheusSink

HEALTHCHECK_LABEL = "section_aee_healthcheck"


class LineProcessor:
    """Turns raw log lines into counter increments."""

    def __init__(
        self,
        fields: List[Tuple[str, str]],
        sink: PrometheusSink,
        output: TextIO,
        errors: TextIO,
        guard: Optional[HostnameGuard] = None,
        geo_hasher: Optional[GeoHasher] = None,
        extractor: Optional[RecordExtractor] = None,
    ):
        """Create a processor.

        Args:
            fields: (log field name, label name) pairs, in configured order
            sink: Counters to increment
            output: Stream every raw line is copied to
            errors: Stream diagnostics are written to
            guard: Hostname cardinality guard, required when hostname is a field
            geo_hasher: Adds the geo_hash label when set
            extractor: Record classifier, the default internal agent pattern if unset
        """
        self.fields = fields
        self.sink = sink
        self.output = output
        self.errors = errors
        self.guard = guard
        self.geo_hasher = geo_hasher
        self.extractor = extractor or RecordExtractor()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _log_error(self, fmt: str, *args) -> None:
        self.errors.write(fmt % args)

    def _passthrough(self, line: str) -> None:
        self.output.write(line)
        self.output.flush()

    def build_labels(self, record: LogRecord) -> dict:
        labels = {
            label: sanitize_label_value(field, record.get(field))
            for field, label in self.fields
        }
        labels[HEALTHCHECK_LABEL] = (
            "true" if self.extractor.is_internal_agent(record) else "false"
        )

        if self.geo_hasher:
            labels, coords = self.geo_hasher.to_hash(labels, record)
            if not coords.is_valid:
                coords.log_errors(record, self._log_error)

        return labels

    def process(self, line: str) -> None:
        """Process one raw line, including its trailing newline."""
        self._passthrough(line)

        try:
            record = LogRecord.from_line(line)
        except LogRecordError as e:
            self._log_error("%s\n", e)
            self.sink.add_json_parse_error()
            return

        labels = self.build_labels(record)
        size = extract_bytes(record)

        if self.guard is not None and HOSTNAME_LABEL in labels:
            hostname = self.guard.admit(labels.pop(HOSTNAME_LABEL))
            self.sink.add_hostname_request(hostname, size)

        self.sink.add_request(labels)
        self.sink.add_bytes(scrub_geo_hash(labels), size)

        if self.extractor.is_page_view(record):
            self.sink.add_page_view()

        self.logger.debug(f"Counted request {labels} with {size} bytes")
