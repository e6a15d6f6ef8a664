"""Geohash label derivation from record coordinates."""

import logging
from typing import Dict, Optional, Tuple

import pygeohash

from .extractors import extract_coordinates
from .models import Coordinates, LogRecord

GEO_HASH_LABEL = "geo_hash"
GEO_MISSING = "missing"
DEFAULT_PRECISION = 2
MIN_PRECISION = 1
MAX_PRECISION = 12


def effective_precision(precision: Optional[int]) -> int:
    """Clamp a configured precision, falling back to the default when out of range."""
    if precision is None or not MIN_PRECISION <= precision <= MAX_PRECISION:
        return DEFAULT_PRECISION
    return precision


def scrub_geo_hash(labels: Dict[str, str]) -> Dict[str, str]:
    """Return a copy of labels without the geo_hash label."""
    return {name: value for name, value in labels.items() if name != GEO_HASH_LABEL}


class GeoHasher:
    """Adds a fixed-precision geo_hash label to a label set."""

    def __init__(self, precision: Optional[int] = DEFAULT_PRECISION):
        self.precision = effective_precision(precision)
        self.logger = logging.getLogger(self.__class__.__name__)
        if precision != self.precision:
            self.logger.debug(
                f"Geohash precision {precision} out of range, using {self.precision}"
            )

    def encode(self, coords: Coordinates) -> str:
        if not coords.is_valid:
            return GEO_MISSING
        return pygeohash.encode(coords.lat, coords.lon, precision=self.precision)

    def to_hash(
        self, labels: Optional[Dict[str, str]], record: Optional[LogRecord]
    ) -> Tuple[Dict[str, str], Coordinates]:
        """Derive the geo_hash label for a record.

        Args:
            labels: Labels built so far for the record
            record: The decoded log record

        Returns:
            Tuple[Dict[str, str], Coordinates]: A copy of labels with geo_hash
            set, and the extraction result so callers can report failures
        """
        if not labels:
            return {GEO_HASH_LABEL: GEO_MISSING}, Coordinates()

        coords = extract_coordinates(record)
        updated = dict(labels)
        updated[GEO_HASH_LABEL] = self.encode(coords)
        return updated, coords
