"""Write workload models: target drives, layout and per-write tasks."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Sequence

from common.exceptions import ConfigurationError


class LayoutMode(str, Enum):
    """On-disk naming layout for benchmark objects."""
    FLAT = "flat"  # <drive>/<index>.<suffix>
    TREE = "tree"  # <drive>/<index>/<suffix>


@dataclass(frozen=True)
class DriveSet:
    """Ordered, immutable set of resolved mount-point paths."""
    paths: tuple[str, ...]

    def __init__(self, paths: Sequence[str]):
        paths = tuple(paths)
        if not paths:
            raise ConfigurationError("At least one drive is required")
        object.__setattr__(self, "paths", paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __getitem__(self, index: int) -> str:
        return self.paths[index]

    def choose(self, rng: random.Random) -> str:
        """Pick one drive uniformly at random."""
        return self.paths[rng.randrange(len(self.paths))]


@dataclass(frozen=True)
class WriteTask:
    """A single scheduled write."""
    object_index: int
    target_drive: str
    size_bytes: int
    path: str
