"""Pseudorandom file-name suffixes.

Names only need to be unlikely to collide across concurrent writers on the
same drive. The generator is not suitable for anything security related.
"""

from __future__ import annotations

import random
import time
from typing import Callable, Optional

ASCII_LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890()"

_MASK32 = 0xFFFFFFFF
_KNUTH = 2654435761


def _time_seeded() -> random.Random:
    return random.Random(time.time_ns())


class RandomNameGenerator:
    """Fill fixed-length names from a 64-symbol alphabet."""

    def __init__(self, source: Optional[Callable[[], random.Random]] = None, length: int = 32):
        self.source = source or _time_seeded
        self.length = length

    def fill(self, dst: bytearray) -> None:
        """Fill ``dst`` in place with alphabet characters."""
        v = self.source().getrandbits(64)
        rnd = v & _MASK32
        rnd2 = v >> 32
        n = len(ASCII_LETTERS)
        for i in range(len(dst)):
            dst[i] = ord(ASCII_LETTERS[(rnd >> 16) % n])
            rnd ^= rnd2
            rnd = (rnd * _KNUTH) & _MASK32

    def __call__(self) -> str:
        buf = bytearray(self.length)
        self.fill(buf)
        return buf.decode("ascii")
