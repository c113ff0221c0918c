"""Cache Statistics Module.

This module defines the cache statistics snapshot.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class CacheStats:
    """Cache statistics."""
    memory_entry_count: int = 0
    disk_entry_count: int = 0
    memory_bytes: int = 0
    disk_bytes: int = 0
    hits: int = 0
    misses: int = 0
    memory_limit_entries: int = 0
    memory_limit_bytes: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hit_rate"] = self.hit_rate
        return data
