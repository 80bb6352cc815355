"""Low level direct-I/O file primitives (Linux)."""

from __future__ import annotations

import ctypes
import ctypes.util
import errno
import fcntl
import logging
import os
from typing import Optional

from bench.core.buffers import DIRECTIO_ALIGN_SIZE
from common.exceptions import ConfigurationError, ShortWriteError

logger = logging.getLogger(__name__)

# <bits/fcntl-linux.h>: do not extend the file size even if offset + len
# is greater than the current size.
FALLOC_FL_KEEP_SIZE = 0x01

O_DIRECT: Optional[int] = getattr(os, "O_DIRECT", None)

_libc = None


def _get_libc():
    global _libc
    if _libc is None:
        _libc = ctypes.CDLL(ctypes.util.find_library("c"), use_errno=True)
        _libc.fallocate.argtypes = [ctypes.c_int, ctypes.c_int, ctypes.c_int64, ctypes.c_int64]
        _libc.fallocate.restype = ctypes.c_int
    return _libc


def direct_io_supported() -> bool:
    return O_DIRECT is not None


def open_direct(path: str, flags: int, mode: int = 0o666) -> int:
    """Open a file with O_DIRECT added to ``flags``."""
    if O_DIRECT is None:
        raise ConfigurationError("O_DIRECT is not supported on this platform")
    return os.open(path, flags | O_DIRECT, mode)


def disable_direct_io(fd: int) -> None:
    """Clear O_DIRECT on an open descriptor."""
    if O_DIRECT is None:
        return
    flags = fcntl.fcntl(fd, fcntl.F_GETFL)
    if flags & O_DIRECT:
        fcntl.fcntl(fd, fcntl.F_SETFL, flags & ~O_DIRECT)


def fallocate(fd: int, offset: int, length: int) -> None:
    """Reserve ``length`` bytes at ``offset`` without changing the file size."""
    if length == 0:
        return
    try:
        libc = _get_libc()
        func = libc.fallocate
    except (OSError, AttributeError):
        raise OSError(errno.EOPNOTSUPP, "fallocate is not available on this platform") from None

    if func(fd, FALLOC_FL_KEEP_SIZE, offset, length) != 0:
        err = ctypes.get_errno()
        raise OSError(err, os.strerror(err))


def fdatasync(fd: int) -> None:
    """Flush file data, not metadata such as mtime/atime."""
    sync = getattr(os, "fdatasync", os.fsync)
    sync(fd)


def _write_unaligned(fd: int, data: memoryview) -> int:
    """Write a chunk that is not a multiple of the alignment.

    The aligned prefix still goes through direct I/O. Direct I/O is then
    switched off for the descriptor and the tail written buffered; the
    caller's fdatasync before close makes the tail durable.
    """
    aligned = len(data) - len(data) % DIRECTIO_ALIGN_SIZE
    if aligned:
        with data[:aligned] as prefix:
            n = os.write(fd, prefix)
        if n != aligned:
            return n

    disable_direct_io(fd)
    written = aligned
    while written < len(data):
        with data[written:] as rest:
            n = os.write(fd, rest)
        if n == 0:
            break
        written += n
    return written


def copy_aligned(fd: int, buf, total_size: int, path: str = "") -> int:
    """Write ``total_size`` bytes of ``buf`` content to ``fd``.

    Full chunks of ``len(buf)`` bytes and any chunk that is a multiple of
    DIRECTIO_ALIGN_SIZE go through direct I/O. A trailing unaligned chunk
    writes its aligned prefix direct and only the remainder buffered.
    Returns the number of bytes written.
    """
    written = 0
    with memoryview(buf) as view:
        while written < total_size:
            chunk = min(len(view), total_size - written)
            with view[:chunk] as data:
                if chunk % DIRECTIO_ALIGN_SIZE:
                    n = _write_unaligned(fd, data)
                else:
                    n = os.write(fd, data)
            written += n
            if n != chunk:
                raise ShortWriteError(path, total_size, written)
    return written
