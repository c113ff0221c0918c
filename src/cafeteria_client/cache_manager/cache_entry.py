"""Cache Entry Module.

This module defines the cache entry envelope stored in both cache tiers.
"""

import json
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CacheEntry:
    """Cached payload with expiry and access metadata.

    ``expires_at`` is fixed when the entry is created; reads update the access
    metadata only and never extend the lifetime of the entry.
    """
    payload: str
    created_at: float
    expires_at: float
    access_count: int = 0
    last_accessed_at: float = 0.0

    @classmethod
    def create(cls, payload: str, ttl_seconds: float, now: Optional[float] = None) -> "CacheEntry":
        """Create an entry expiring ``ttl_seconds`` after ``now``."""
        now = time.time() if now is None else now
        return cls(
            payload=payload,
            created_at=now,
            expires_at=now + ttl_seconds,
            access_count=0,
            last_accessed_at=now
        )

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if the cache entry has expired."""
        now = time.time() if now is None else now
        return now > self.expires_at

    def touched(self, now: Optional[float] = None) -> "CacheEntry":
        """Return a copy with updated access metadata and the same expiry."""
        now = time.time() if now is None else now
        return replace(self, access_count=self.access_count + 1, last_accessed_at=now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "access_count": self.access_count,
            "last_accessed_at": self.last_accessed_at,
            "payload": self.payload
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "CacheEntry":
        """Decode an envelope; raises ValueError/KeyError/TypeError on bad input."""
        raw = json.loads(data.decode("utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("cache envelope is not an object")
        return cls(
            payload=str(raw["payload"]),
            created_at=float(raw["created_at"]),
            expires_at=float(raw["expires_at"]),
            access_count=int(raw.get("access_count", 0)),
            last_accessed_at=float(raw.get("last_accessed_at", raw["created_at"]))
        )
