"""Wire the benchmark components together and run one benchmark."""

from __future__ import annotations

import logging
import random
from typing import Optional

from bench.config import BenchSettings
from bench.core.buffers import AlignedBufferPool
from bench.core.disk import direct_io_supported
from bench.core.drives import parse_drives
from bench.core.names import RandomNameGenerator
from bench.core.reporter import aggregate
from bench.core.scheduler import BatchScheduler
from bench.core.writer import DirectWriter
from common.exceptions import ConfigurationError
from common.models.metrics import BenchmarkResult
from common.utils import Timer, format_duration, format_size

logger = logging.getLogger(__name__)


class ProgressLogger:
    """Batch callback that logs every ``step_percent`` of completed objects."""

    def __init__(self, total: int, step_percent: int = 10):
        self.total = total
        self.step_percent = step_percent
        self._next = step_percent

    def __call__(self, number: int, batch: range) -> None:
        percent = batch.stop * 100 // self.total
        if percent < self._next:
            return
        logger.info(f"Progress: {batch.stop}/{self.total} object(s) written ({percent}%)")
        self._next = (percent // self.step_percent + 1) * self.step_percent


def run_benchmark(
    settings: BenchSettings,
    names: Optional[RandomNameGenerator] = None,
    rng: Optional[random.Random] = None,
) -> BenchmarkResult:
    """Run the write benchmark described by ``settings``.
    
    Raises ConfigurationError before any file is written, or the first
    WriteError reported by the scheduler.
    """
    drives = parse_drives(settings.drives)
    if settings.direct_io and not direct_io_supported():
        raise ConfigurationError("O_DIRECT is not supported on this platform, set DIRECT_IO=off")
    
    pool = AlignedBufferPool(settings.block_size, max_buffers=settings.concurrent)
    writer = DirectWriter(
        drives=drives,
        file_size=settings.filesize,
        pool=pool,
        names=names,
        layout=settings.layout,
        direct_io=settings.direct_io,
        rng=rng,
    )
    scheduler = BatchScheduler(
        writer.write,
        total=settings.nfiles,
        concurrency=settings.concurrent,
        slow_threshold=settings.slow_threshold,
        debug=settings.debug,
        on_batch=ProgressLogger(settings.nfiles),
    )
    
    logger.info(
        f"Writing {settings.nfiles} object(s) of {format_size(settings.filesize)} "
        f"to {len(drives)} drive(s), concurrency {settings.concurrent}, "
        f"layout {settings.layout.value}, direct I/O {'on' if settings.direct_io else 'off'}"
    )
    
    with Timer() as timer:
        try:
            outcome = scheduler.run()
        finally:
            pool.close()
    
    if outcome.failed:
        raise outcome.failure.error
    
    result = BenchmarkResult(
        latency=aggregate(outcome.samples),
        slow_writes=outcome.slow_writes,
        objects=settings.nfiles,
        file_size=settings.filesize,
        drives=len(drives),
        concurrency=settings.concurrent,
        elapsed_seconds=timer.elapsed_seconds,
    )
    
    logger.info(
        f"Completed {result.objects} write(s) in {format_duration(result.elapsed_seconds)} "
        f"({result.objects_per_second:.1f} obj/s, {result.throughput_mbps:.2f} MiB/s)"
    )
    if result.slow_writes:
        logger.info(
            f"{len(result.slow_writes)} write(s) exceeded {format_duration(settings.slow_threshold)}"
        )
    
    return result
