"""Cache Manager Module.

This module provides the two-tier (memory + disk) cache with fixed TTLs,
LRU bounding of the memory tier and hit/miss statistics.
"""

from .cache_stats import CacheStats
from .cache_policy import CachePolicy
from .cache_entry import CacheEntry
from .cache_keys import endpoint_key, menu_key
from .cache_manager_core import CacheManager

__all__ = [
    "CacheStats",
    "CachePolicy",
    "CacheEntry",
    "CacheManager",
    "endpoint_key",
    "menu_key"
]
