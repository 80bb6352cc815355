"""Batched concurrent execution of writes with a barrier between batches."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional

from common.exceptions import ConfigurationError
from common.models.execution import RunState, WriteOutcome
from common.models.metrics import SlowWrite
from common.utils import format_duration

logger = logging.getLogger(__name__)

WriteFn = Callable[[int], WriteOutcome]
BatchCallback = Callable[[int, range], None]


@dataclass
class ScheduleResult:
    """Samples collected by a run, or the failure that stopped it."""
    samples: List[float] = field(default_factory=list)
    slow_writes: List[SlowWrite] = field(default_factory=list)
    failure: Optional[WriteOutcome] = None
    batches_run: int = 0
    
    @property
    def failed(self) -> bool:
        return self.failure is not None


class BatchScheduler:
    """Run ``total`` writes in consecutive batches of at most ``concurrency``.
    
    Every task in a batch runs on its own worker thread; the next batch is
    dispatched only after the whole batch has completed. The first batch
    containing a failure stops the run.
    """
    
    def __init__(
        self,
        write_fn: WriteFn,
        total: int,
        concurrency: int,
        slow_threshold: float = 1.0,
        debug: bool = False,
        on_batch: Optional[BatchCallback] = None,
    ):
        if total < 1:
            raise ConfigurationError(f"Object count must be at least 1, got {total}")
        if concurrency < 1:
            raise ConfigurationError(f"Concurrency must be at least 1, got {concurrency}")
        
        self.write_fn = write_fn
        self.total = total
        self.concurrency = concurrency
        self.slow_threshold = slow_threshold
        self.debug = debug
        self.on_batch = on_batch
        
        self.state = RunState.IDLE
    
    def batches(self) -> Iterator[range]:
        """Consecutive index ranges covering [0, total)."""
        for start in range(0, self.total, self.concurrency):
            yield range(start, min(start + self.concurrency, self.total))
    
    def _run_task(self, index: int, samples: List[float]) -> WriteOutcome:
        outcome = self.write_fn(index)
        if outcome.ok:
            # Each task owns its index; readers wait for the final barrier.
            samples[index] = outcome.duration
        return outcome
    
    def _flag_slow(self, outcome: WriteOutcome, slow: List[SlowWrite]) -> None:
        if outcome.duration <= self.slow_threshold:
            return
        slow.append(SlowWrite(index=outcome.index, path=outcome.path or "", duration=outcome.duration))
        if self.debug:
            logger.warning(
                f"object {outcome.index} ({outcome.path}) took more than "
                f"{format_duration(self.slow_threshold)} to write: {format_duration(outcome.duration)}"
            )
    
    def run(self) -> ScheduleResult:
        """Dispatch every batch in order and collect latency samples."""
        samples: List[float] = [0.0] * self.total
        result = ScheduleResult()
        workers = min(self.concurrency, self.total)
        
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="writer") as executor:
            for number, batch in enumerate(self.batches(), start=1):
                self.state = RunState.DISPATCHING
                futures = [executor.submit(self._run_task, i, samples) for i in batch]
                
                self.state = RunState.AWAITING_BARRIER
                wait(futures)
                result.batches_run = number
                
                outcomes = sorted((f.result() for f in futures), key=lambda o: o.index)
                for outcome in outcomes:
                    if outcome.ok:
                        self._flag_slow(outcome, result.slow_writes)
                
                failures = [o for o in outcomes if not o.ok]
                if failures:
                    self.state = RunState.FAILED
                    result.failure = failures[0]
                    logger.error(
                        f"Batch {number} had {len(failures)} failed write(s), "
                        f"aborting: {failures[0].error}"
                    )
                    return result
                
                logger.debug(f"Batch {number} complete: objects {batch.start}-{batch.stop - 1}")
                if self.on_batch:
                    self.on_batch(number, batch)
        
        self.state = RunState.DONE
        result.samples = samples
        return result
