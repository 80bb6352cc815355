"""Direct-I/O file writer: one preallocated, durably flushed file per call."""

from __future__ import annotations

import logging
import os
import random
from typing import Optional

from bench.core.buffers import AlignedBufferPool
from bench.core.disk import copy_aligned, fallocate, fdatasync, open_direct
from bench.core.names import RandomNameGenerator
from common.exceptions import BenchmarkError, ShortWriteError, WriteError
from common.models.execution import WriteOutcome
from common.models.workload import DriveSet, LayoutMode, WriteTask
from common.utils import Timer, ensure_dir

logger = logging.getLogger(__name__)

CREATE_FLAGS = os.O_CREAT | os.O_WRONLY | os.O_EXCL
FILE_MODE = 0o666
DIR_MODE = 0o755


class DirectWriter:
    """Write benchmark objects to randomly chosen drives."""
    
    def __init__(
        self,
        drives: DriveSet,
        file_size: int,
        pool: AlignedBufferPool,
        names: Optional[RandomNameGenerator] = None,
        layout: LayoutMode = LayoutMode.FLAT,
        direct_io: bool = True,
        rng: Optional[random.Random] = None,
    ):
        if file_size < 0:
            raise ValueError(f"file_size must not be negative, got {file_size}")
        self.drives = drives
        self.file_size = file_size
        self.pool = pool
        self.names = names or RandomNameGenerator()
        self.layout = layout
        self.direct_io = direct_io
        self.rng = rng or random.Random()
    
    def plan(self, index: int) -> WriteTask:
        """Pick a drive and a fresh name for object ``index``."""
        drive = self.drives.choose(self.rng)
        suffix = self.names()
        if self.layout == LayoutMode.TREE:
            path = os.path.join(drive, str(index), suffix)
        else:
            path = os.path.join(drive, f"{index}.{suffix}")
        return WriteTask(object_index=index, target_drive=drive, size_bytes=self.file_size, path=path)
    
    def _open(self, path: str) -> int:
        if self.direct_io:
            return open_direct(path, CREATE_FLAGS, FILE_MODE)
        return os.open(path, CREATE_FLAGS, FILE_MODE)
    
    def write_file(self, task: WriteTask) -> float:
        """Create, fill and flush one file. Returns elapsed seconds.
        
        Raises WriteError (or ShortWriteError) naming the failing step.
        """
        path = task.path
        index = task.object_index
        
        with Timer() as timer:
            try:
                ensure_dir(os.path.dirname(path), mode=DIR_MODE)
            except OSError as e:
                raise WriteError("mkdir", path, e, index) from e
            
            try:
                fd = self._open(path)
            except OSError as e:
                raise WriteError("open", path, e, index) from e
            
            try:
                self._fill(fd, task)
            except BaseException:
                # The original error wins over a failing close.
                try:
                    os.close(fd)
                except OSError as close_error:
                    logger.debug(f"close {path} after failed write: {close_error}")
                raise
            
            try:
                os.close(fd)
            except OSError as e:
                raise WriteError("close", path, e, index) from e
        
        return timer.elapsed_seconds
    
    def _fill(self, fd: int, task: WriteTask) -> None:
        path = task.path
        index = task.object_index
        size = task.size_bytes
        
        if size > 0:
            try:
                fallocate(fd, 0, size)
            except OSError as e:
                raise WriteError("fallocate", path, e, index) from e
        
        try:
            buf = self.pool.acquire()
        except OSError as e:
            raise WriteError("buffer", path, e, index) from e

        try:
            written = copy_aligned(fd, buf, size, path)
        except ShortWriteError as e:
            e.index = index
            raise
        except OSError as e:
            raise WriteError("write", path, e, index) from e
        finally:
            self.pool.release(buf)

        if written != size:
            raise ShortWriteError(path, size, written, index)
        
        try:
            fdatasync(fd)
        except OSError as e:
            raise WriteError("fdatasync", path, e, index) from e
    
    def write(self, index: int) -> WriteOutcome:
        """Write object ``index`` and report the outcome instead of raising."""
        task = self.plan(index)
        try:
            duration = self.write_file(task)
        except BenchmarkError as e:
            return WriteOutcome.failure(index, e, path=task.path)
        return WriteOutcome.success(index, task.path, duration)
