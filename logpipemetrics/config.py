"""Environment-driven configuration for the metrics module."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .cardinality import DEFAULT_MAX_HOSTNAMES
from .server import DEFAULT_METRICS_PATH, DEFAULT_METRICS_PORT

# Configuration Constants
DEFAULT_PIPE_PATH = "/tmp/access-log.fifo"
DEFAULT_LABELS = "status,content_type,hostname"
DEFAULT_LOG_LEVEL = "INFO"

logger = logging.getLogger("MetricsConfig")


class ConfigurationError(Exception):
    """Custom exception for configuration-related errors."""

    pass


def parse_labels(raw: str) -> List[str]:
    """Split a comma-separated label list, dropping blanks and duplicates."""
    labels: List[str] = []
    for label in raw.split(","):
        label = label.strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def _parse_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass
class MetricsConfig:
    """Settings for one metrics session and its pipe."""

    pipe_path: str = DEFAULT_PIPE_PATH
    labels: List[str] = field(default_factory=lambda: parse_labels(DEFAULT_LABELS))
    geo_hash_precision: Optional[int] = None
    max_hostnames: int = DEFAULT_MAX_HOSTNAMES
    metrics_path: str = DEFAULT_METRICS_PATH
    metrics_port: int = DEFAULT_METRICS_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def geo_hashing(self) -> bool:
        return self.geo_hash_precision is not None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MetricsConfig":
        """Build the configuration from environment variables.

        Args:
            env: Mapping to read instead of os.environ

        Returns:
            MetricsConfig: The resolved configuration

        Raises:
            ConfigurationError: If a numeric setting is malformed
        """
        env = os.environ if env is None else env

        max_hostnames = DEFAULT_MAX_HOSTNAMES
        raw_max = env.get("MODULE_METRICS_MAX_HOSTNAMES", "")
        if raw_max:
            try:
                max_hostnames = int(raw_max)
                logger.debug(f"Using {max_hostnames} for max hostnames")
            except ValueError:
                logger.debug(f"Ignoring invalid MODULE_METRICS_MAX_HOSTNAMES {raw_max!r}")

        port = _parse_int(env, "P8S_METRICS_PORT")
        if port is not None and not 0 <= port <= 65535:
            raise ConfigurationError(f"P8S_METRICS_PORT out of range: {port}")

        return cls(
            pipe_path=env.get("LOG_PIPE_PATH") or DEFAULT_PIPE_PATH,
            labels=parse_labels(env.get("METRICS_LABELS", DEFAULT_LABELS)),
            geo_hash_precision=_parse_int(env, "GEO_HASH_PRECISION"),
            max_hostnames=max_hostnames,
            metrics_path=env.get("P8S_METRICS_PATH") or DEFAULT_METRICS_PATH,
            metrics_port=DEFAULT_METRICS_PORT if port is None else port,
            log_level=env.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL,
        )
