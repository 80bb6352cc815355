"""Pytest configuration and shared fixtures."""

import errno
import mmap
import os
import tempfile
import shutil
from pathlib import Path
from typing import Generator, List

import pytest

from bench.core.buffers import AlignedBufferPool
from bench.core.disk import fallocate, open_direct, direct_io_supported
from common.models.workload import DriveSet

SETTINGS_ENV = (
    "DRIVES",
    "CONCURRENT",
    "FILESIZE",
    "NFILES",
    "TREE",
    "DEBUG",
    "SLOW_THRESHOLD",
    "BLOCK_SIZE",
    "DIRECT_IO",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    """Keep the caller's environment out of settings."""
    for key in SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fallocate_supported(temp_dir: Path) -> bool:
    """Whether the temp filesystem supports keep-size preallocation."""
    probe = temp_dir / ".fallocate_probe"
    fd = os.open(probe, os.O_CREAT | os.O_WRONLY, 0o644)
    try:
        fallocate(fd, 0, 4096)
    except OSError as e:
        if e.errno in (errno.EOPNOTSUPP, errno.ENOSYS):
            return False
        raise
    finally:
        os.close(fd)
        probe.unlink()
    return True


@pytest.fixture
def direct_io_available(temp_dir: Path) -> bool:
    """Whether the temp filesystem accepts O_DIRECT writes (tmpfs does not)."""
    if not direct_io_supported():
        return False
    probe = temp_dir / ".direct_probe"
    buf = mmap.mmap(-1, 4096)
    try:
        fd = open_direct(str(probe), os.O_CREAT | os.O_WRONLY)
    except OSError:
        buf.close()
        return False
    try:
        os.write(fd, buf)
    except OSError:
        return False
    finally:
        os.close(fd)
        buf.close()
        probe.unlink()
    return True


@pytest.fixture
def drive_dirs(temp_dir: Path, fallocate_supported: bool) -> List[Path]:
    """Two drive directories on a filesystem that supports preallocation."""
    if not fallocate_supported:
        pytest.skip("filesystem does not support fallocate")
    dirs = [temp_dir / "a", temp_dir / "b"]
    for d in dirs:
        d.mkdir()
    return dirs


@pytest.fixture
def drive_set(drive_dirs: List[Path]) -> DriveSet:
    return DriveSet([str(d) for d in drive_dirs])


@pytest.fixture
def buffer_pool() -> Generator[AlignedBufferPool, None, None]:
    """A small pool: 64KiB blocks."""
    pool = AlignedBufferPool(block_size=64 * 1024)
    yield pool
    pool.close()

