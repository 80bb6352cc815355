"""Run state and per-task outcome models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.exceptions import BenchmarkError


class RunState(str, Enum):
    """Scheduler run states."""
    IDLE = "idle"
    DISPATCHING = "dispatching"
    AWAITING_BARRIER = "awaiting_barrier"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class WriteOutcome:
    """Tagged result of one write: a duration on success, an error on failure."""
    index: int
    path: Optional[str] = None
    duration: Optional[float] = None
    error: Optional[BenchmarkError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, index: int, path: str, duration: float) -> "WriteOutcome":
        return cls(index=index, path=path, duration=duration)

    @classmethod
    def failure(cls, index: int, error: BenchmarkError, path: Optional[str] = None) -> "WriteOutcome":
        return cls(index=index, path=path, error=error)
