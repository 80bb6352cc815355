"""Drive specification parsing with brace-range (ellipses) expansion.

A drive specification is a comma-separated list of paths. Any entry may use
one or more ``{START...END}`` ranges, e.g. ``/mnt/drive{1...12}`` or
``/mnt/node{1...2}/disk{01...04}``. Multiple ranges in one entry expand to
their cartesian product with the leftmost range varying slowest.
"""

from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass
from typing import List

from common.exceptions import ConfigurationError
from common.models.workload import DriveSet

logger = logging.getLogger(__name__)

ELLIPSES = "..."
OPEN_BRACE = "{"
CLOSE_BRACE = "}"

_RANGE = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class EllipsesRange:
    """One ``{START...END}`` range and the literal text preceding it."""
    prefix: str
    start: int
    end: int
    width: int

    def labels(self) -> List[str]:
        if self.width:
            return [f"{i:0{self.width}d}" for i in range(self.start, self.end + 1)]
        return [str(i) for i in range(self.start, self.end + 1)]


@dataclass(frozen=True)
class EllipsesPattern:
    """A drive entry split into its ranges and trailing literal text."""
    ranges: tuple[EllipsesRange, ...]
    suffix: str

    def expand(self) -> List[str]:
        out = []
        for combo in itertools.product(*(r.labels() for r in self.ranges)):
            parts = [r.prefix + label for r, label in zip(self.ranges, combo)]
            out.append("".join(parts) + self.suffix)
        return out


def has_ellipses(entry: str) -> bool:
    """Return True if the entry contains a range pattern."""
    return ELLIPSES in entry


def _parse_range(entry: str, body: str) -> tuple[int, int, int]:
    start_str, sep, end_str = body.partition(ELLIPSES)
    if not sep or ELLIPSES in end_str:
        raise ConfigurationError(f"Invalid ellipses range {{{body}}} in {entry!r}")
    if not start_str or not end_str:
        raise ConfigurationError(f"Empty range bound in {entry!r}")
    if not (start_str.isdigit() and end_str.isdigit()):
        raise ConfigurationError(f"Range bounds must be decimal numbers in {entry!r}")

    start, end = int(start_str), int(end_str)
    if start > end:
        raise ConfigurationError(
            f"Range start {start} is greater than end {end} in {entry!r}"
        )

    width = 0
    if start_str.startswith("0") and len(start_str) > 1:
        width = len(start_str)
    return start, end, width


def find_ellipses_patterns(entry: str) -> EllipsesPattern:
    """Parse every ``{START...END}`` range in an entry."""
    if entry.count(OPEN_BRACE) != entry.count(CLOSE_BRACE):
        raise ConfigurationError(f"Unbalanced braces in {entry!r}")

    ranges = []
    pos = 0
    for match in _RANGE.finditer(entry):
        start, end, width = _parse_range(entry, match.group(1))
        ranges.append(EllipsesRange(entry[pos:match.start()], start, end, width))
        pos = match.end()
    suffix = entry[pos:]

    # Anything left outside braces is malformed (e.g. "/mnt/drive1...4").
    literal = "".join(r.prefix for r in ranges) + suffix
    if ELLIPSES in literal or OPEN_BRACE in literal or CLOSE_BRACE in literal:
        raise ConfigurationError(f"Ellipses must be enclosed in braces in {entry!r}")
    if not ranges:
        raise ConfigurationError(f"No range pattern found in {entry!r}")

    return EllipsesPattern(tuple(ranges), suffix)


def parse_drives(spec: str) -> DriveSet:
    """Resolve a drive specification into a DriveSet."""
    drives: List[str] = []
    for entry in spec.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if not has_ellipses(entry):
            drives.append(entry)
            continue
        drives.extend(find_ellipses_patterns(entry).expand())

    if not drives:
        raise ConfigurationError("DRIVES is a mandatory option")

    logger.debug(f"Resolved {len(drives)} drive(s) from {spec!r}")
    return DriveSet(drives)
