"""Benchmark configuration settings."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bench.core.buffers import DEFAULT_BLOCK_SIZE
from common.models.workload import LayoutMode
from common.utils import parse_bytes, parse_duration


class BenchSettings(BaseSettings):
    """Benchmark settings loaded from environment variables."""
    
    # Comma-separated drive list, each entry optionally a {START...END} range
    drives: str = ""
    
    # Writes in flight per batch
    concurrent: int = Field(default=100, ge=1)
    
    # Bytes per object and number of objects (e.g. "128KiB", "8M")
    filesize: int = Field(default=128 * 1024, ge=0)
    nfiles: int = Field(default=8_000_000, ge=1)
    
    # <drive>/<index>/<suffix> instead of <drive>/<index>.<suffix>
    tree: bool = False
    
    # Slow-write reporting
    debug: bool = False
    slow_threshold: float = Field(default=1.0, ge=0)  # seconds
    
    # Direct I/O
    block_size: int = DEFAULT_BLOCK_SIZE
    direct_io: bool = True
    
    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
    
    @field_validator("filesize", "nfiles", "block_size", mode="before")
    @classmethod
    def parse_quantity(cls, v):
        """Accept human-readable byte quantities."""
        if isinstance(v, (str, int)) and not isinstance(v, bool):
            return parse_bytes(v)
        return v
    
    @field_validator("slow_threshold", mode="before")
    @classmethod
    def parse_threshold(cls, v):
        """Accept durations such as '1s' or '250ms'."""
        if isinstance(v, (str, int, float)) and not isinstance(v, bool):
            return parse_duration(v)
        return v
    
    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level
    
    @property
    def layout(self) -> LayoutMode:
        return LayoutMode.TREE if self.tree else LayoutMode.FLAT


# Global settings instance
_settings: Optional[BenchSettings] = None


def get_settings() -> BenchSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = BenchSettings()
    return _settings


def init_settings(**kwargs) -> BenchSettings:
    """Initialize settings with custom values."""
    global _settings
    _settings = BenchSettings(**kwargs)
    return _settings
