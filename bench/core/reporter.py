"""Latency aggregation and summary output."""

from __future__ import annotations

import sys
from typing import List, Sequence, TextIO

import numpy as np

from common.models.metrics import BenchmarkResult, LatencyStats, SlowWrite
from common.utils import format_duration


def aggregate(samples: Sequence[float]) -> LatencyStats:
    """Sort samples and compute mean, sample stddev, min and max."""
    if len(samples) == 0:
        raise ValueError("No latency samples to aggregate")
    
    ordered = np.sort(np.asarray(samples, dtype=np.float64))
    fastest = float(ordered[0])
    slowest = float(ordered[-1])
    
    # Rounding can push the mean of identical samples just past the extremes.
    mean = min(max(float(ordered.mean()), fastest), slowest)
    stddev = float(ordered.std(ddof=1)) if ordered.size > 1 else 0.0
    
    return LatencyStats(
        count=int(ordered.size),
        mean=mean,
        stddev=stddev,
        min=fastest,
        max=slowest,
    )


def format_report(stats: LatencyStats) -> List[str]:
    """The four summary lines."""
    return [
        f"Mean time taken {format_duration(stats.mean)}",
        f"Standard deviation time taken {format_duration(stats.stddev)}",
        f"Fastest time taken {format_duration(stats.min)}",
        f"Slowest time taken {format_duration(stats.max)}",
    ]


def format_slow_writes(slow_writes: Sequence[SlowWrite], threshold: float) -> List[str]:
    return [
        f"object {s.index} ({s.path}) took more than {format_duration(threshold)} to write"
        for s in slow_writes
    ]


class LatencyReporter:
    """Print benchmark results."""
    
    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdout
    
    def report(self, result: BenchmarkResult) -> None:
        for line in format_report(result.latency):
            print(line, file=self.stream)
    
    def report_slow_writes(self, result: BenchmarkResult, threshold: float) -> None:
        for line in format_slow_writes(result.slow_writes, threshold):
            print(line, file=self.stream)
