"""Unit tests for the direct-I/O file writer."""

import errno
import os
import random
from pathlib import Path
from unittest.mock import patch

import pytest

from bench.core.scheduler import BatchScheduler
from bench.core.writer import DirectWriter
from common.exceptions import ShortWriteError, WriteError
from common.models.workload import DriveSet, LayoutMode


def files_under(root: Path) -> list:
    return sorted(p for p in root.rglob("*") if p.is_file() and not p.name.startswith("."))


def make_writer(drives, pool, file_size=4096, **kwargs) -> DirectWriter:
    kwargs.setdefault("direct_io", False)
    kwargs.setdefault("rng", random.Random(1))
    return DirectWriter(drives=drives, file_size=file_size, pool=pool, **kwargs)


class TestPlan:
    """Tests for path planning."""
    
    def test_flat_layout(self, buffer_pool):
        """Test <drive>/<index>.<suffix> naming."""
        writer = make_writer(DriveSet(["/mnt/a"]), buffer_pool, names=lambda: "abc")
        
        task = writer.plan(7)
        
        assert task.path == "/mnt/a/7.abc"
        assert task.target_drive == "/mnt/a"
        assert task.object_index == 7
        assert task.size_bytes == 4096
    
    def test_tree_layout(self, buffer_pool):
        """Test <drive>/<index>/<suffix> naming."""
        writer = make_writer(
            DriveSet(["/mnt/a"]), buffer_pool, names=lambda: "abc", layout=LayoutMode.TREE,
        )
        
        assert writer.plan(7).path == "/mnt/a/7/abc"
    
    def test_negative_size(self, buffer_pool):
        """Test negative sizes are rejected."""
        with pytest.raises(ValueError):
            make_writer(DriveSet(["/mnt/a"]), buffer_pool, file_size=-1)


class TestWriteFile:
    """Tests for writing files."""
    
    def test_writes_exact_null_content(self, drive_set, buffer_pool, temp_dir):
        """Test a file of exactly S null bytes is produced."""
        writer = make_writer(drive_set, buffer_pool, file_size=4096)
        task = writer.plan(0)
        
        duration = writer.write_file(task)
        
        assert duration >= 0
        assert Path(task.path).read_bytes() == b"\0" * 4096
        assert Path(task.path).parent in [Path(d) for d in drive_set]
    
    def test_larger_than_block(self, drive_set, buffer_pool):
        """Test sizes spanning several blocks with an unaligned tail."""
        size = buffer_pool.block_size * 3 + 123
        writer = make_writer(drive_set, buffer_pool, file_size=size)
        task = writer.plan(1)
        
        writer.write_file(task)
        
        assert os.path.getsize(task.path) == size
        assert Path(task.path).read_bytes() == b"\0" * size
    
    def test_zero_size(self, drive_set, buffer_pool):
        """Test empty objects skip preallocation."""
        writer = make_writer(drive_set, buffer_pool, file_size=0)
        task = writer.plan(2)
        
        with patch("bench.core.writer.fallocate") as mock_fallocate:
            writer.write_file(task)
        
        mock_fallocate.assert_not_called()
        assert os.path.getsize(task.path) == 0
    
    def test_tree_layout_creates_directory(self, drive_set, buffer_pool):
        """Test the per-object directory is created."""
        writer = make_writer(drive_set, buffer_pool, layout=LayoutMode.TREE)
        task = writer.plan(3)
        
        writer.write_file(task)
        
        assert Path(task.path).parent.name == "3"
        assert Path(task.path).parent.is_dir()
    
    def test_direct_io(self, drive_set, buffer_pool, direct_io_available):
        """Test writing through O_DIRECT."""
        if not direct_io_available:
            pytest.skip("filesystem does not support O_DIRECT")
        writer = make_writer(drive_set, buffer_pool, file_size=8192 + 17, direct_io=True)
        task = writer.plan(4)
        
        writer.write_file(task)
        
        assert Path(task.path).read_bytes() == b"\0" * (8192 + 17)
    
    def test_spreads_across_drives(self, drive_set, buffer_pool, temp_dir):
        """Test random drive selection uses every drive."""
        writer = make_writer(drive_set, buffer_pool, file_size=16)
        
        for i in range(40):
            writer.write_file(writer.plan(i))
        
        for drive in drive_set:
            assert files_under(Path(drive))
        assert len(files_under(temp_dir)) == 40
    
    def test_buffer_returned(self, drive_set, buffer_pool):
        """Test the buffer goes back to the pool after a write."""
        writer = make_writer(drive_set, buffer_pool)
        
        writer.write_file(writer.plan(0))
        writer.write_file(writer.plan(1))
        
        assert buffer_pool.allocated == 1
        assert buffer_pool.idle == 1


class TestWriteFailures:
    """Tests for write error handling."""
    
    @pytest.fixture
    def one_drive(self, drive_dirs):
        return DriveSet([str(drive_dirs[0])])
    
    def test_collision_is_fatal(self, one_drive, buffer_pool):
        """Test an existing name fails instead of being overwritten."""
        writer = make_writer(one_drive, buffer_pool, names=lambda: "same")
        first = writer.plan(0)
        writer.write_file(first)
        Path(first.path).write_bytes(b"original")
        
        with pytest.raises(WriteError) as exc_info:
            writer.write_file(writer.plan(0))
        
        assert exc_info.value.op == "open"
        assert isinstance(exc_info.value.cause, FileExistsError)
        assert Path(first.path).read_bytes() == b"original"
    
    def test_mkdir_failure(self, temp_dir, buffer_pool):
        """Test a drive path that is a regular file."""
        blocker = temp_dir / "not-a-dir"
        blocker.write_bytes(b"")
        writer = make_writer(DriveSet([str(blocker)]), buffer_pool)
        
        with pytest.raises(WriteError) as exc_info:
            writer.write_file(writer.plan(0))
        
        assert exc_info.value.op == "mkdir"
        assert exc_info.value.index == 0
    
    def test_fallocate_failure(self, one_drive, buffer_pool):
        """Test preallocation errors abort the write."""
        writer = make_writer(one_drive, buffer_pool)
        
        with patch("bench.core.writer.fallocate", side_effect=OSError(errno.ENOSPC, "No space left on device")):
            with pytest.raises(WriteError) as exc_info:
                writer.write_file(writer.plan(0))
        
        assert exc_info.value.op == "fallocate"
        assert exc_info.value.cause.errno == errno.ENOSPC
    
    def test_write_failure_returns_buffer(self, one_drive, buffer_pool):
        """Test the buffer is released when the copy fails."""
        writer = make_writer(one_drive, buffer_pool)
        
        with patch("bench.core.writer.copy_aligned", side_effect=OSError(errno.EIO, "I/O error")):
            with pytest.raises(WriteError) as exc_info:
                writer.write_file(writer.plan(5))
        
        assert exc_info.value.op == "write"
        assert exc_info.value.index == 5
        assert buffer_pool.idle == buffer_pool.allocated == 1
    
    def test_buffer_allocation_failure(self, one_drive, buffer_pool):
        """Test a failed buffer allocation becomes a failed outcome naming the step."""
        writer = make_writer(one_drive, buffer_pool)

        with patch.object(buffer_pool, "acquire", side_effect=OSError(errno.ENOMEM, "Cannot allocate memory")):
            result = BatchScheduler(writer.write, total=1, concurrency=1).run()

        assert result.failed
        error = result.failure.error
        assert isinstance(error, WriteError)
        assert error.op == "buffer"
        assert error.index == 0
        assert error.cause.errno == errno.ENOMEM

    def test_size_mismatch(self, one_drive, buffer_pool):
        """Test writing anything but the requested size is fatal."""
        writer = make_writer(one_drive, buffer_pool, file_size=4096)
        
        with patch("bench.core.writer.copy_aligned", return_value=4095):
            with pytest.raises(ShortWriteError) as exc_info:
                writer.write_file(writer.plan(6))
        
        assert exc_info.value.expected == 4096
        assert exc_info.value.written == 4095
        assert exc_info.value.index == 6
    
    def test_fdatasync_failure(self, one_drive, buffer_pool):
        """Test flush errors abort the write."""
        writer = make_writer(one_drive, buffer_pool)
        
        with patch("bench.core.writer.fdatasync", side_effect=OSError(errno.EIO, "I/O error")):
            with pytest.raises(WriteError) as exc_info:
                writer.write_file(writer.plan(0))
        
        assert exc_info.value.op == "fdatasync"
    
    def test_write_returns_outcome(self, one_drive, buffer_pool):
        """Test write() reports failures as outcomes."""
        writer = make_writer(one_drive, buffer_pool, names=lambda: "dup")
        
        ok = writer.write(0)
        failed = writer.write(0)
        
        assert ok.ok and ok.duration >= 0
        assert not failed.ok
        assert failed.index == 0
        assert isinstance(failed.error, WriteError)
        assert failed.path == ok.path
