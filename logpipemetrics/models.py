"""Data models for log record processing."""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

# Floats at or above this magnitude are rendered with an exponent.
EXPONENT_THRESHOLD = 1e21


class LogRecordError(Exception):
    """Exception raised when a line cannot be decoded into a log record."""

    pass


class CoordinateError(Exception):
    """Base exception for lat/lon extraction failures."""

    pass


class CoordinateExtractError(CoordinateError):
    """The latlon string could not be split into a lat/lon pair."""

    pass


class CoordinateConvertError(CoordinateError):
    """The lat/lon pair could not be converted to floats."""

    pass


def display_string(value: Any) -> str:
    """Coerce a decoded JSON value to the text used for labels."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer() and abs(value) < EXPONENT_THRESHOLD:
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


def parse_int(value: Any) -> Optional[int]:
    """Parse a decoded JSON value as an integer, or return None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = display_string(value).strip()
    if not INTEGER_PATTERN.match(text):
        return None
    return int(text)


class LogRecord:
    """A single decoded access-log line."""

    def __init__(self, fields: Optional[Dict[str, Any]] = None):
        self.fields = fields or {}

    @classmethod
    def from_line(cls, line: str) -> "LogRecord":
        """Decode one line of JSON text into a record.

        Args:
            line: Raw line, with or without its trailing newline

        Returns:
            LogRecord: The decoded record

        Raises:
            LogRecordError: If the line is not a JSON object
        """
        try:
            decoded = json.loads(line)
        except ValueError as e:
            raise LogRecordError(f"json decode failed: {e}")

        # A bare null carries no fields, so it counts as an empty record.
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise LogRecordError(
                f"json decode failed: expected object, got {type(decoded).__name__}"
            )
        return cls(decoded)

    def get(self, name: str) -> Any:
        return self.fields.get(name)

    def text(self, name: str) -> str:
        return display_string(self.fields.get(name))

    def object(self, name: str) -> Optional[Dict[str, Any]]:
        value = self.fields.get(name)
        return value if isinstance(value, dict) else None

    def find(self, path: str) -> Any:
        """Walk a dotted path through nested objects, returning None if absent."""
        current: Any = self.fields
        for key in path.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        return current

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def __repr__(self) -> str:
        return f"LogRecord({self.fields!r})"


@dataclass
class Coordinates:
    """Outcome of extracting a lat/lon pair from a log record."""

    raw_lat: str = ""
    raw_lon: str = ""
    lat: float = 0.0
    lon: float = 0.0
    missing_geo: bool = False
    missing_latlon: bool = False
    extract_error: Optional[CoordinateError] = None
    convert_error: Optional[CoordinateError] = None

    @property
    def is_valid(self) -> bool:
        return (
            not self.missing_geo
            and not self.missing_latlon
            and self.extract_error is None
            and self.convert_error is None
        )

    @property
    def is_zero(self) -> bool:
        return (
            self.raw_lat == ""
            and self.raw_lon == ""
            and self.lat == 0.0
            and self.lon == 0.0
            and self.extract_error is None
            and self.convert_error is None
        )

    def log_errors(self, record: LogRecord, log) -> None:
        """Report each failure flag through a printf-style log function."""
        if self.missing_geo:
            log("[WARN] geo_hash: missing '%s' object in log line: %s\n", "geo", record)
        if self.missing_latlon:
            log("[WARN] geo_hash: missing '%s' field in log line: %s\n", "latlon", record)
        if self.extract_error is not None:
            log("[WARN] geo_hash: %s: %s\n", self.extract_error, record)
        if self.convert_error is not None:
            log(
                "[WARN] geo_hash: %s (lat=%r, lon=%r): %s\n",
                self.convert_error,
                self.raw_lat,
                self.raw_lon,
                record,
            )
