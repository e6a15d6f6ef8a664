"""Named pipe log monitor implementation."""

import enum
import os
import select
from typing import BinaryIO, Optional

from ..processor import LineProcessor
from ..utils import FifoReadError, open_read_fifo
from .base import Monitor

# Configuration Constants
DEFAULT_POLL_INTERVAL = 0.5
READ_SIZE = 64 * 1024


class ReaderState(enum.Enum):
    READING = "reading"
    REOPENING = "reopening"


class FifoMonitor(Monitor):
    """Reads newline-delimited records from a named pipe.

    When the writer closes its end the pipe reports end-of-stream; the
    monitor then reopens the same path and keeps reading, so writers can
    come and go for the lifetime of the process.
    """

    def __init__(
        self,
        path: str,
        processor: LineProcessor,
        reader: Optional[BinaryIO] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        super().__init__(os.path.basename(path), processor)
        self.path = path
        self.reader = reader
        self.poll_interval = poll_interval
        self.state = ReaderState.READING
        self.reopen_count = 0
        self._buffer = bytearray()

    def _read_chunk(self) -> Optional[bytes]:
        """Wait up to one poll interval for data.

        Returns None when nothing arrived, b"" at end-of-stream.
        """
        try:
            readable, _, _ = select.select([self.reader], [], [], self.poll_interval)
            if not readable:
                return None
            return self.reader.read(READ_SIZE)
        except BlockingIOError:
            return None
        except (OSError, ValueError) as e:
            raise FifoReadError(f"Read {self.path} failed: {e}")

    def _emit_lines(self) -> None:
        while True:
            end = self._buffer.find(b"\n")
            if end < 0:
                return
            line = bytes(self._buffer[: end + 1])
            del self._buffer[: end + 1]
            self.process_line(line.decode("utf-8", errors="replace"))

    def _flush_partial(self) -> None:
        """Process a record the writer left without a trailing newline."""
        if self._buffer:
            line = bytes(self._buffer)
            self._buffer.clear()
            self.process_line(line.decode("utf-8", errors="replace"))

    def _close(self) -> None:
        if self.reader is not None:
            try:
                self.reader.close()
            except OSError as e:
                self.logger.warning(f"Failed to close {self.path}: {e}")
            self.reader = None

    def _reopen(self) -> None:
        self._close()
        self.reader = open_read_fifo(self.path)
        self.reopen_count += 1
        self.logger.info(f"Writer closed {self.path}, reopened (#{self.reopen_count})")

    def poll_logs(self) -> None:
        """Read and process records until stopped."""
        if self.reader is None:
            self.reader = open_read_fifo(self.path)

        try:
            while not self.stopping:
                if self.state is ReaderState.REOPENING:
                    self._reopen()
                    self.state = ReaderState.READING
                    continue

                chunk = self._read_chunk()
                if chunk is None:
                    continue
                if not chunk:
                    self._flush_partial()
                    self.state = ReaderState.REOPENING
                    continue

                self._buffer.extend(chunk)
                self._emit_lines()
        finally:
            self._close()
