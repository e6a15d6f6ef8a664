"""Monitor implementations for log streams."""

from .base import Monitor
from .fifo import FifoMonitor, ReaderState

__all__ = ["Monitor", "FifoMonitor", "ReaderState"]
