"""Concurrent direct-I/O write latency benchmark."""

__version__ = "1.0.0"
