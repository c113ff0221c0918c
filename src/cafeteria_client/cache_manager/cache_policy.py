"""Cache Policy Module.

This module defines the named cache policy presets.
"""

from dataclasses import dataclass

_MB = 1024 * 1024


@dataclass(frozen=True)
class CachePolicy:
    """TTL and size bounds chosen per call site."""
    ttl_seconds: float
    max_memory_bytes: int
    max_disk_bytes: int


CachePolicy.DEFAULT = CachePolicy(
    ttl_seconds=300,  # 5 minutes
    max_memory_bytes=50 * _MB,
    max_disk_bytes=200 * _MB
)

CachePolicy.SHORT_TERM = CachePolicy(
    ttl_seconds=60,  # 1 minute
    max_memory_bytes=10 * _MB,
    max_disk_bytes=50 * _MB
)

CachePolicy.LONG_TERM = CachePolicy(
    ttl_seconds=3600,  # 1 hour
    max_memory_bytes=100 * _MB,
    max_disk_bytes=500 * _MB
)
