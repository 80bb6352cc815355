"""Common utility functions."""

from __future__ import annotations

import math
import re
import time
from pathlib import Path
from typing import Union

import yaml

from common.exceptions import ConfigurationError


# go-humanize compatible size table: bare SI suffixes are powers of 1000,
# IEC ("i") suffixes powers of 1024.
_BYTE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "ki": 1024,
    "kib": 1024,
    "m": 1000 ** 2,
    "mb": 1000 ** 2,
    "mi": 1024 ** 2,
    "mib": 1024 ** 2,
    "g": 1000 ** 3,
    "gb": 1000 ** 3,
    "gi": 1024 ** 3,
    "gib": 1024 ** 3,
    "t": 1000 ** 4,
    "tb": 1000 ** 4,
    "ti": 1024 ** 4,
    "tib": 1024 ** 4,
    "p": 1000 ** 5,
    "pb": 1000 ** 5,
    "pi": 1024 ** 5,
    "pib": 1024 ** 5,
    "e": 1000 ** 6,
    "eb": 1000 ** 6,
    "ei": 1024 ** 6,
    "eib": 1024 ** 6,
}

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_bytes(size_str: Union[str, int]) -> int:
    """Parse a human-readable quantity (e.g. '128KiB', '8M', '1,024') to an int."""
    if isinstance(size_str, int):
        if size_str < 0:
            raise ConfigurationError(f"Invalid size: {size_str}")
        return size_str

    text = size_str.strip()
    match = re.match(r"^[\d.,]+", text)
    if not match:
        raise ConfigurationError(f"Invalid size format: {size_str!r}")

    number = match.group(0).replace(",", "")
    try:
        value = float(number)
    except ValueError:
        raise ConfigurationError(f"Invalid size format: {size_str!r}") from None

    unit = text[match.end():].strip().lower()
    if unit not in _BYTE_UNITS:
        raise ConfigurationError(f"Unhandled size name: {unit!r}")

    return int(value * _BYTE_UNITS[unit])


def format_size(bytes_val: int, precision: int = 2) -> str:
    """Format bytes to human-readable string."""
    if bytes_val < 0:
        return "0 B"
    
    units = ['B', 'KiB', 'MiB', 'GiB', 'TiB', 'PiB']
    unit_index = 0
    size = float(bytes_val)
    
    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1
    
    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.{precision}f} {units[unit_index]}"


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration such as '1s', '250ms' or '1m30s' to seconds.

    Plain numbers are taken as seconds.
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise ConfigurationError(f"Invalid duration: {value!r}") from None

    if not math.isfinite(seconds) or seconds < 0:
        raise ConfigurationError(f"Invalid duration: {value!r}")
    return seconds


def _trim_fraction(whole: int, frac: int, width: int) -> str:
    if frac == 0:
        return str(whole)
    return f"{whole}.{frac:0{width}d}".rstrip("0")


def format_duration(seconds: float) -> str:
    """Format seconds the way Go prints a time.Duration (e.g. '12.345ms', '1m30s')."""
    ns = int(round(seconds * 1e9))
    if ns == 0:
        return "0s"

    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_trim_fraction(ns // 1_000, ns % 1_000, 3)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_trim_fraction(ns // 1_000_000, ns % 1_000_000, 6)}ms"

    hours, rem = divmod(ns, 3600 * 1_000_000_000)
    minutes, rem = divmod(rem, 60 * 1_000_000_000)
    secs = _trim_fraction(rem // 1_000_000_000, rem % 1_000_000_000, 9) + "s"
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"
    if minutes:
        return f"{sign}{minutes}m{secs}"
    return f"{sign}{secs}"


def load_yaml(path: str | Path) -> dict:
    """Load a YAML file."""
    with open(path, 'r') as f:
        return yaml.safe_load(f) or {}


def ensure_dir(path: str | Path, mode: int = 0o755) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(mode=mode, parents=True, exist_ok=True)
    return path


class Timer:
    """Simple context manager for timing code blocks."""
    
    def __init__(self):
        self.start_time: float | None = None
        self.end_time: float | None = None
    
    def __enter__(self):
        self.start_time = time.perf_counter()
        return self
    
    def __exit__(self, *args):
        self.end_time = time.perf_counter()
    
    @property
    def elapsed_seconds(self) -> float:
        if self.start_time is None:
            return 0
        end = self.end_time or time.perf_counter()
        return end - self.start_time
    
    @property
    def elapsed_ms(self) -> float:
        return self.elapsed_seconds * 1000
