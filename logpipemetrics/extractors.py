"""Extractors for reading derived values out of log records."""

import re
from typing import Optional

from .models import (
    Coordinates,
    CoordinateConvertError,
    CoordinateExtractError,
    LogRecord,
    parse_int,
)

GEO_KEY = "geo"
GEO_LATLON_KEY = "latlon"
USER_AGENT_PATH = "request.http_user_agent"
BYTES_KEYS = ("bytes", "bytes_sent")
MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0

EXTRACT_ERROR_MESSAGE = "error while extracting lat/lon from log line"
CONVERT_ERROR_MESSAGE = "error while converting found lat/lon from log line"


def extract_coordinates(record: Optional[LogRecord]) -> Coordinates:
    """Extract the lat/lon pair from the record's geo.latlon field.

    Every failure mode is reported through the returned Coordinates
    rather than raised.
    """
    geo = record.object(GEO_KEY) if record is not None else None
    if geo is None:
        return Coordinates(missing_geo=True, missing_latlon=True)

    latlon = geo.get(GEO_LATLON_KEY)
    if not isinstance(latlon, str):
        return Coordinates(missing_latlon=True)

    parts = [part.strip() for part in latlon.split(",")]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return Coordinates(extract_error=CoordinateExtractError(EXTRACT_ERROR_MESSAGE))

    raw_lat, raw_lon = parts
    coords = Coordinates(raw_lat=raw_lat, raw_lon=raw_lon)
    try:
        lat, lon = float(raw_lat), float(raw_lon)
    except ValueError:
        coords.convert_error = CoordinateConvertError(CONVERT_ERROR_MESSAGE)
        return coords

    # nan fails both comparisons, so it is rejected here too
    if not (abs(lat) <= MAX_LATITUDE and abs(lon) <= MAX_LONGITUDE):
        coords.convert_error = CoordinateConvertError(CONVERT_ERROR_MESSAGE)
        return coords

    coords.lat, coords.lon = lat, lon
    return coords


def extract_bytes(record: LogRecord) -> int:
    """Resolve the response size, preferring bytes over bytes_sent.

    bytes_sent is consulted when bytes is absent or does not parse to a
    positive integer. Unparsable and negative values count as 0.
    """
    size = 0
    for key in BYTES_KEYS:
        size = parse_int(record.get(key)) or 0
        if size > 0:
            break
    return max(size, 0)


class RecordExtractor:
    """Classifies records by user agent, content type and status."""

    def __init__(self, internal_agent_regex: str = r"^aee/v.+"):
        self.internal_agent_pattern = re.compile(internal_agent_regex)

    def extract_user_agent(self, record: LogRecord) -> str:
        user_agent = record.find(USER_AGENT_PATH)
        return user_agent if isinstance(user_agent, str) else ""

    def is_internal_agent(self, record: LogRecord) -> bool:
        """Whether the request came from the internal health-check agent."""
        return bool(self.internal_agent_pattern.match(self.extract_user_agent(record)))

    def is_page_view(self, record: LogRecord) -> bool:
        """Count text/html 2xx requests from real user agents as page views."""
        return (
            record.text("status").startswith("2")
            and record.text("content_type").lower().startswith("text/html")
            and not self.is_internal_agent(record)
        )
