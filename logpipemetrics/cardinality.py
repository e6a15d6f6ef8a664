"""Bounds the number of distinct hostname label values."""

import logging
import threading
from typing import Set

DEFAULT_MAX_HOSTNAMES = 1000
MAX_HOSTNAMES_REACHED = "max-hostnames-reached"


class HostnameGuard:
    """Admits hostnames until a fixed number of distinct values is reached.

    Once full, unseen hostnames are replaced with a sentinel and never
    recorded, so wildcard domains cannot grow the label set.
    """

    def __init__(self, max_hostnames: int = DEFAULT_MAX_HOSTNAMES):
        self.max_hostnames = max_hostnames
        self.hostnames: Set[str] = set()
        self.lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    def admit(self, hostname: str) -> str:
        """Return the hostname to use as a label value, recording it if new."""
        with self.lock:
            if hostname in self.hostnames:
                return hostname
            if len(self.hostnames) < self.max_hostnames:
                self.hostnames.add(hostname)
                return hostname

        self.logger.debug(f"Hostname limit {self.max_hostnames} reached, dropping {hostname!r}")
        return MAX_HOSTNAMES_REACHED

    def __contains__(self, hostname: str) -> bool:
        return hostname in self.hostnames

    def __len__(self) -> int:
        return len(self.hostnames)
