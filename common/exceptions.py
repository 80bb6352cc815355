"""Exception hierarchy shared by the benchmark components."""

from __future__ import annotations

from typing import Optional


class BenchmarkError(Exception):
    """Base class for every error that aborts a benchmark run."""


class ConfigurationError(BenchmarkError, ValueError):
    """Invalid settings detected before any work starts."""


class WriteError(BenchmarkError):
    """A single write operation failed.

    ``op`` names the failing step (mkdir, open, fallocate, buffer, write,
    fdatasync, close) and ``path`` the file it was operating on.
    """

    def __init__(
        self,
        op: str,
        path: str,
        cause: Optional[BaseException] = None,
        index: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.op = op
        self.path = path
        self.cause = cause
        self.index = index
        detail = message if message is not None else str(cause)
        super().__init__(f"{op} {path}: {detail}")


class ShortWriteError(WriteError):
    """Bytes written did not match the requested file size."""

    def __init__(self, path: str, expected: int, written: int, index: Optional[int] = None):
        self.expected = expected
        self.written = written
        super().__init__(
            "write",
            path,
            index=index,
            message=f"unexpected file size written expected {expected}, got {written}",
        )
