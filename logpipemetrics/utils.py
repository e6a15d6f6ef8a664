"""Named pipe helpers for the log FIFO."""

import os
import stat
from typing import BinaryIO

FIFO_MODE = 0o666


class FifoError(Exception):
    """Base exception for named pipe operations."""

    pass


class FifoCreateError(FifoError):
    """Exception raised when the named pipe cannot be created."""

    pass


class FifoOpenError(FifoError):
    """Exception raised when the named pipe cannot be opened."""

    pass


class FifoReadError(FifoError):
    """Exception raised when reading from the named pipe fails."""

    pass


def create_log_fifo(path: str) -> None:
    """
    Create the log pipe, removing any file already at the path.

    Args:
        path: Filesystem path of the pipe

    Raises:
        FifoCreateError: If the pipe cannot be created
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise FifoCreateError(f"Remove {path} failed: {e}")

    try:
        os.mkfifo(path, FIFO_MODE)
        # mkfifo honours the umask, so force the mode afterwards
        os.chmod(path, FIFO_MODE)
    except OSError as e:
        raise FifoCreateError(f"Mkfifo {path} failed: {e}")


def is_fifo(path: str) -> bool:
    try:
        return stat.S_ISFIFO(os.stat(path).st_mode)
    except OSError:
        return False


def open_read_fifo(path: str) -> BinaryIO:
    """
    Open the pipe for reading without waiting for a writer.

    Args:
        path: Filesystem path of the pipe

    Returns:
        BinaryIO: Unbuffered, non-blocking reader

    Raises:
        FifoOpenError: If the pipe cannot be opened
    """
    try:
        fd = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
    except OSError as e:
        raise FifoOpenError(f"OpenReadFifo {path} failed: {e}")
    return os.fdopen(fd, "rb", buffering=0)


def open_write_fifo(path: str) -> BinaryIO:
    """
    Open the pipe for writing.

    A reader must already be open, otherwise the non-blocking open fails.
    Holding this handle keeps the pipe from reaching end-of-stream when
    external writers disconnect.

    Args:
        path: Filesystem path of the pipe

    Returns:
        BinaryIO: Unbuffered writer

    Raises:
        FifoOpenError: If the pipe cannot be opened
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
    except OSError as e:
        raise FifoOpenError(f"OpenWriteFifo {path} failed: {e}")
    # Writes should block once the pipe buffer is full rather than fail.
    os.set_blocking(fd, True)
    return os.fdopen(fd, "wb", buffering=0)
