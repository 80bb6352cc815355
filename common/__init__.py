"""Common utilities and models shared across the benchmark and the CLI."""

from common.models.workload import DriveSet, LayoutMode, WriteTask
from common.models.metrics import LatencyStats, SlowWrite, BenchmarkResult
from common.models.execution import RunState, WriteOutcome
from common.exceptions import BenchmarkError, ConfigurationError, WriteError, ShortWriteError

__all__ = [
    "DriveSet",
    "LayoutMode",
    "WriteTask",
    "LatencyStats",
    "SlowWrite",
    "BenchmarkResult",
    "RunState",
    "WriteOutcome",
    "BenchmarkError",
    "ConfigurationError",
    "WriteError",
    "ShortWriteError",
]
