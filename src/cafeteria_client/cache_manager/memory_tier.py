"""In-memory cache tier.

An LRU map of serialized entries bounded both by entry count and by total
byte size.
"""

from cachetools import LRUCache


class MemoryTier(LRUCache):
    """LRU cache of ``bytes`` values with a count limit and a byte limit."""

    def __init__(self, max_entries: int, max_bytes: int):
        super().__init__(maxsize=max_bytes, getsizeof=len)
        self.max_entries = max_entries

    def __setitem__(self, key, value):
        if key not in self:
            while len(self) >= self.max_entries:
                self.popitem()
        super().__setitem__(key, value)
