"""Base abstract class for log stream monitors."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional

from ..processor import LineProcessor
from ..utils import FifoError


class Monitor(ABC):
    """Base abstract class for log stream monitors."""

    def __init__(self, name: str, processor: LineProcessor):
        self.name = name
        self.processor = processor
        self.error: Optional[FifoError] = None
        self._running = False
        self._stop_requested = threading.Event()
        self.logger = logging.getLogger(f"{self.__class__.__name__}.{self.name}")

    @abstractmethod
    def poll_logs(self) -> None:
        """Read log lines until stopped (implemented by subclasses)."""
        pass

    @property
    def running(self) -> bool:
        return self._running

    @property
    def stopping(self) -> bool:
        return self._stop_requested.is_set()

    @property
    def failed(self) -> bool:
        return self.error is not None

    def start(self) -> None:
        """Start the monitoring process.

        Transport failures end the monitor; they are logged and kept on
        `error` for whoever owns the thread.
        """
        self._running = True
        self.logger.info(f"Starting monitor for '{self.name}'")
        try:
            self.poll_logs()
        except FifoError as e:
            self.error = e
            self.logger.error(f"Fatal error in monitor {self.name}: {e}", exc_info=True)
        finally:
            self._running = False

    def stop(self) -> None:
        """Stop the monitoring process."""
        self._stop_requested.set()

    def process_line(self, line: str) -> None:
        """Process a single log line; a failing line is logged and skipped."""
        try:
            self.processor.process(line)
        except Exception as e:
            self.logger.error(f"Error processing log line: {e}", exc_info=True)
