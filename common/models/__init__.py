"""Common data models for the direct-I/O write benchmark."""

from common.models.workload import DriveSet, LayoutMode, WriteTask
from common.models.metrics import LatencyStats, SlowWrite, BenchmarkResult
from common.models.execution import RunState, WriteOutcome

__all__ = [
    "DriveSet",
    "LayoutMode",
    "WriteTask",
    "LatencyStats",
    "SlowWrite",
    "BenchmarkResult",
    "RunState",
    "WriteOutcome",
]
