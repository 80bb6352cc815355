"""Latency metrics and benchmark result models."""

from __future__ import annotations

from typing import List
from pydantic import BaseModel, Field


class LatencyStats(BaseModel):
    """Latency statistics in seconds."""
    count: int = Field(default=0, description="Number of samples")
    mean: float = Field(default=0, description="Arithmetic mean")
    stddev: float = Field(default=0, description="Sample standard deviation")
    min: float = Field(default=0, description="Fastest write")
    max: float = Field(default=0, description="Slowest write")


class SlowWrite(BaseModel):
    """A write that exceeded the slowness threshold."""
    index: int = Field(..., description="Object index of the write")
    path: str = Field(..., description="File that was written")
    duration: float = Field(..., description="Elapsed seconds")


class BenchmarkResult(BaseModel):
    """Final result of a benchmark run."""
    latency: LatencyStats = Field(default_factory=LatencyStats)
    slow_writes: List[SlowWrite] = Field(default_factory=list)
    
    # Workload summary
    objects: int = Field(default=0, description="Objects written")
    file_size: int = Field(default=0, description="Bytes per object")
    drives: int = Field(default=0, description="Number of target drives")
    concurrency: int = Field(default=0, description="Concurrent writes per batch")
    
    # Wall-clock time of the whole run
    elapsed_seconds: float = Field(default=0)
    
    @property
    def total_bytes(self) -> int:
        return self.objects * self.file_size
    
    @property
    def objects_per_second(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0
        return self.objects / self.elapsed_seconds
    
    @property
    def throughput_mbps(self) -> float:
        """Aggregate write throughput in MiB/s."""
        if self.elapsed_seconds <= 0:
            return 0
        return self.total_bytes / self.elapsed_seconds / (1024 * 1024)
