"""Pool of page-aligned, zero-filled buffers for direct I/O."""

from __future__ import annotations

import logging
import mmap
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DIRECTIO_ALIGN_SIZE = 4096
DEFAULT_BLOCK_SIZE = 4 * 1024 * 1024  # 4MiB


class AlignedBufferPool:
    """Reusable aligned buffers shared by concurrent writers.

    Buffers are anonymous memory maps, so their address is page aligned and
    their content starts zeroed. ``acquire`` hands out an idle buffer or
    allocates a new one; once ``max_buffers`` are allocated it waits for a
    release instead.
    """

    def __init__(self, block_size: int = DEFAULT_BLOCK_SIZE, max_buffers: Optional[int] = None):
        if block_size <= 0 or block_size % DIRECTIO_ALIGN_SIZE:
            raise ConfigurationError(
                f"Block size must be a positive multiple of {DIRECTIO_ALIGN_SIZE}, got {block_size}"
            )
        if max_buffers is not None and max_buffers < 1:
            raise ConfigurationError(f"max_buffers must be at least 1, got {max_buffers}")

        self.block_size = block_size
        self.max_buffers = max_buffers

        self._idle: List[mmap.mmap] = []
        self._allocated = 0
        self._cond = threading.Condition()

    @property
    def allocated(self) -> int:
        return self._allocated

    @property
    def idle(self) -> int:
        return len(self._idle)

    def acquire(self) -> mmap.mmap:
        """Check out a buffer."""
        with self._cond:
            while not self._idle and self.max_buffers is not None and self._allocated >= self.max_buffers:
                self._cond.wait()
            if self._idle:
                return self._idle.pop()
            self._allocated += 1

        try:
            buf = mmap.mmap(-1, self.block_size)
        except OSError:
            with self._cond:
                self._allocated -= 1
                self._cond.notify()
            raise
        logger.debug(f"Allocated aligned buffer #{self._allocated} ({self.block_size} bytes)")
        return buf

    def release(self, buf: mmap.mmap, dirty: bool = False) -> None:
        """Return a buffer; ``dirty`` buffers are zeroed before reuse."""
        if dirty:
            buf.seek(0)
            buf.write(bytes(self.block_size))
            buf.seek(0)
        with self._cond:
            self._idle.append(buf)
            self._cond.notify()

    @contextmanager
    def borrow(self) -> Iterator[mmap.mmap]:
        """Scoped acquire/release; the buffer is returned on any exit."""
        buf = self.acquire()
        try:
            yield buf
        finally:
            self.release(buf)

    def close(self) -> None:
        """Unmap idle buffers."""
        with self._cond:
            idle, self._idle = self._idle, []
            self._allocated -= len(idle)
        for buf in idle:
            buf.close()
