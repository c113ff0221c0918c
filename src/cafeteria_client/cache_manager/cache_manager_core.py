"""Cache Manager Core Module.

This module contains the two-tier CacheManager: an LRU memory tier in front of
a directory of one ``<key>.cache`` file per entry. Every operation is
best-effort; storage and (de)serialization failures are logged through the
injected sink and reported to callers as "not cached".
"""

import asyncio
import os
import tempfile
import time
from datetime import date as date_type
from enum import Enum
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple, Union

from ..logging_config import LogCategory, LogSink
from ..models import MealMenu
from ..serialization import dump_json, load_json
from .cache_entry import CacheEntry
from .cache_keys import endpoint_key, menu_key
from .cache_policy import CachePolicy
from .cache_stats import CacheStats
from .memory_tier import MemoryTier

CACHE_FILE_SUFFIX = ".cache"

_MISSING = object()


class CacheManager:
    """Two-tier (memory + disk) cache with fixed per-entry TTL."""

    def __init__(
        self,
        directory: Union[str, Path],
        memory_max_entries: int = 100,
        memory_max_bytes: int = 50 * 1024 * 1024,  # 50MB
        cleanup_interval: float = 60.0,
        disk_max_bytes: int = 0,
        log_sink: Optional[LogSink] = None,
        clock: Callable[[], float] = time.time
    ):
        """Initialize cache manager."""
        self.directory = Path(directory)
        self.memory_max_entries = max(1, memory_max_entries)
        self.memory_max_bytes = memory_max_bytes
        self.cleanup_interval = cleanup_interval
        self.disk_max_bytes = disk_max_bytes
        self.log = log_sink or LogSink()
        self._clock = clock

        self._memory = MemoryTier(self.memory_max_entries, self.memory_max_bytes)
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

        self._cleanup_task: Optional[asyncio.Task] = None

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.log.error("Failed to create cache directory", LogCategory.CACHE,
                           directory=str(self.directory), error=str(e))

        self.log.info("CacheManager initialized", LogCategory.CACHE,
                      cache_directory=str(self.directory),
                      memory_limit_entries=self.memory_max_entries,
                      memory_limit_bytes=self.memory_max_bytes)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Start the periodic expired-entry sweep."""
        if self._cleanup_task is None and self.cleanup_interval > 0:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        self.log.info("CacheManager started", LogCategory.CACHE)

    async def stop(self):
        """Stop background tasks."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        self.log.info("CacheManager stopped", LogCategory.CACHE)

    async def _cleanup_loop(self):
        """Background task for periodic cleanup."""
        while True:
            await asyncio.sleep(self.cleanup_interval)
            await self.remove_expired()
            if self.disk_max_bytes > 0:
                await self.enforce_disk_limit(self.disk_max_bytes)

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    async def put(self, key: str, value: Any, policy: CachePolicy = CachePolicy.DEFAULT) -> bool:
        """Store ``value`` in both tiers. Returns False when it could not be cached."""
        try:
            path = self._disk_path(key)
            entry = CacheEntry.create(dump_json(value), policy.ttl_seconds, now=self._clock())
            data = entry.to_bytes()
        except Exception as e:
            self.log.error("Cache store failed", LogCategory.CACHE, exc_info=e, key=key, error=str(e))
            return False

        disk_limit = min(filter(None, (policy.max_disk_bytes, self.disk_max_bytes)), default=0)
        write = asyncio.ensure_future(asyncio.to_thread(self._write_file, path, data, disk_limit))
        try:
            evicted = await asyncio.shield(write)
        except asyncio.CancelledError:
            # the worker thread cannot be interrupted; let it finish, then undo its file
            await asyncio.gather(write, return_exceptions=True)
            await self._remove_file(path)
            self.log.debug("Cache store cancelled", LogCategory.CACHE, key=key)
            raise
        except Exception as e:
            self.log.error("Cache disk write failed", LogCategory.CACHE, exc_info=e, key=key, error=str(e))
            return False

        async with self._lock:
            try:
                self._memory[key] = data
            except ValueError:
                # larger than the whole memory tier
                self._memory.pop(key, None)
                self.log.debug("Entry too large for memory tier", LogCategory.CACHE,
                               key=key, data_size=len(data))

        self.log.debug("Cache stored", LogCategory.CACHE, key=key, data_size=len(data),
                       ttl_seconds=policy.ttl_seconds, disk_evictions=evicted)
        return True

    async def get(self, key: str, as_type: Any = None, default: Any = None) -> Any:
        """Look up ``key``; memory tier first, then disk with promotion.

        With ``as_type`` the cached JSON is validated into that type and a
        payload that does not validate is reported as a miss.
        """
        now = self._clock()

        async with self._lock:
            data = self._memory.get(key)
            if data is not None:
                entry = self._decode_entry(key, data)
                if entry is None or entry.is_expired(now):
                    del self._memory[key]
                else:
                    value = self._load_payload(key, entry, as_type)
                    if value is not _MISSING:
                        try:
                            self._memory[key] = entry.touched(now).to_bytes()
                        except ValueError:
                            # grew past the memory tier bound; disk copy still serves it
                            self._memory.pop(key, None)
                            self.log.debug("Entry too large for memory tier", LogCategory.CACHE, key=key)
                        self._hits += 1
                        self.log.debug("Memory cache hit", LogCategory.CACHE,
                                       key=key, access_count=entry.access_count + 1)
                        return value
                    self._misses += 1
                    return default

        value = await self._get_from_disk(key, as_type, now)
        if value is not _MISSING:
            return value

        async with self._lock:
            self._misses += 1
        self.log.debug("Cache miss", LogCategory.CACHE, key=key)
        return default

    async def _get_from_disk(self, key: str, as_type: Any, now: float) -> Any:
        try:
            path = self._disk_path(key)
            data = await asyncio.to_thread(self._read_file, path)
        except Exception as e:
            self.log.error("Cache disk read failed", LogCategory.CACHE, exc_info=e, key=key, error=str(e))
            return _MISSING
        if data is None:
            return _MISSING

        entry = self._decode_entry(key, data)
        if entry is None or entry.is_expired(now):
            await self._remove_file(path)
            return _MISSING

        value = self._load_payload(key, entry, as_type)
        if value is _MISSING:
            return _MISSING

        touched = entry.touched(now).to_bytes()
        try:
            await asyncio.to_thread(self._write_file, path, touched, 0)
        except Exception as e:
            self.log.warning("Cache access update failed", LogCategory.CACHE, key=key, error=str(e))

        async with self._lock:
            try:
                self._memory[key] = touched
            except ValueError:
                pass
            self._hits += 1
        self.log.debug("Disk cache hit", LogCategory.CACHE, key=key, access_count=entry.access_count + 1)
        return value

    async def remove(self, key: str) -> None:
        """Remove ``key`` from both tiers; a missing key is not an error."""
        async with self._lock:
            self._memory.pop(key, None)
        try:
            path = self._disk_path(key)
        except ValueError as e:
            self.log.error("Cache remove failed", LogCategory.CACHE, key=key, error=str(e))
            return
        await self._remove_file(path)
        self.log.debug("Cache removed", LogCategory.CACHE, key=key)

    async def clear(self) -> None:
        """Empty both tiers and reset the hit/miss counters."""
        async with self._lock:
            self._memory.clear()
            self._hits = 0
            self._misses = 0
        try:
            removed = await asyncio.to_thread(self._clear_directory)
        except Exception as e:
            self.log.error("Disk cache clear failed", LogCategory.CACHE, exc_info=e, error=str(e))
            return
        self.log.info("Cache cleared", LogCategory.CACHE, disk_files_removed=removed)

    async def remove_expired(self) -> int:
        """Delete expired (or unreadable) entries. Returns the number of disk files removed."""
        now = self._clock()
        async with self._lock:
            for key, data in list(self._memory.items()):
                entry = self._decode_entry(key, data)
                if entry is None or entry.is_expired(now):
                    del self._memory[key]

        try:
            removed = await asyncio.to_thread(self._sweep_directory, now)
        except Exception as e:
            self.log.error("Expired cache sweep failed", LogCategory.CACHE, exc_info=e, error=str(e))
            return 0

        for name in removed:
            self.log.debug("Expired cache removed", LogCategory.CACHE, file=name)
        if removed:
            self.log.info(f"Cleaned up {len(removed)} expired cache entries", LogCategory.CACHE)
        return len(removed)

    async def enforce_disk_limit(self, max_bytes: int) -> int:
        """Evict least recently written files until the disk tier fits ``max_bytes``."""
        try:
            return await asyncio.to_thread(self._trim_directory, max_bytes, None)
        except Exception as e:
            self.log.error("Disk limit enforcement failed", LogCategory.CACHE, exc_info=e, error=str(e))
            return 0

    async def exists(self, key: str) -> bool:
        """Check for a live entry without touching statistics or access metadata."""
        now = self._clock()
        async with self._lock:
            data = self._memory.get(key)
            if data is not None:
                entry = self._decode_entry(key, data)
                if entry is not None and not entry.is_expired(now):
                    return True
        try:
            data = await asyncio.to_thread(self._read_file, self._disk_path(key))
        except Exception:
            return False
        if data is None:
            return False
        entry = self._decode_entry(key, data)
        return entry is not None and not entry.is_expired(now)

    async def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        async with self._lock:
            memory_entry_count = len(self._memory)
            memory_bytes = self._memory.currsize
            hits, misses = self._hits, self._misses

        try:
            files = await asyncio.to_thread(self._list_files)
        except Exception as e:
            self.log.error("Disk cache info collection failed", LogCategory.CACHE, error=str(e))
            files = []

        return CacheStats(
            memory_entry_count=memory_entry_count,
            disk_entry_count=len(files),
            memory_bytes=memory_bytes,
            disk_bytes=sum(size for _, size, _ in files),
            hits=hits,
            misses=misses,
            memory_limit_entries=self.memory_max_entries,
            memory_limit_bytes=self.memory_max_bytes
        )

    # ------------------------------------------------------------------
    # Endpoint and menu helpers
    # ------------------------------------------------------------------

    async def cache_response(self, response: Any, endpoint) -> bool:
        return await self.put(endpoint_key(endpoint), response, CachePolicy.DEFAULT)

    async def get_cached_response(self, endpoint, as_type: Any = None, default: Any = None) -> Any:
        return await self.get(endpoint_key(endpoint), as_type, default)

    async def cache_menu(self, menu: MealMenu, user_id: str) -> bool:
        """Cache a menu document under its user/campus/date key."""
        key = menu_key(user_id, menu.campus, menu.date)
        return await self.put(key, menu, CachePolicy.LONG_TERM)

    async def get_cached_menu(self, user_id: str, campus: Union[str, Enum], day: date_type) -> Optional[MealMenu]:
        return await self.get(menu_key(user_id, campus, day), MealMenu)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _disk_path(self, key: str) -> Path:
        if not key or key in (".", "..") or "/" in key or os.sep in key or "\x00" in key:
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}{CACHE_FILE_SUFFIX}"

    def _decode_entry(self, key: str, data: bytes) -> Optional[CacheEntry]:
        try:
            return CacheEntry.from_bytes(data)
        except (ValueError, KeyError, TypeError) as e:
            self.log.warning("Corrupt cache entry discarded", LogCategory.CACHE, key=key, error=str(e))
            return None

    def _load_payload(self, key: str, entry: CacheEntry, as_type: Any) -> Any:
        try:
            if as_type is None:
                return load_json(entry.payload)
            return load_json(entry.payload, as_type)
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            self.log.warning("Cached payload does not match requested type", LogCategory.CACHE,
                             key=key, error=str(e))
            return _MISSING

    async def _remove_file(self, path: Path) -> None:
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as e:
            self.log.error("Cache file removal failed", LogCategory.CACHE, file=path.name, error=str(e))

    @staticmethod
    def _read_file(path: Path) -> Optional[bytes]:
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def _write_file(self, path: Path, data: bytes, disk_limit: int) -> int:
        """Atomically replace ``path``; optionally trim the directory afterwards."""
        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        if disk_limit > 0:
            return self._trim_directory(disk_limit, keep=path)
        return 0

    def _list_files(self) -> List[Tuple[Path, int, float]]:
        files = []
        for path in self.directory.glob(f"*{CACHE_FILE_SUFFIX}"):
            try:
                stat = path.stat()
            except FileNotFoundError:
                continue
            files.append((path, stat.st_size, stat.st_mtime))
        return files

    def _clear_directory(self) -> int:
        removed = 0
        for path, _, _ in self._list_files():
            path.unlink(missing_ok=True)
            removed += 1
        return removed

    def _sweep_directory(self, now: float) -> List[str]:
        removed = []
        for path, _, _ in self._list_files():
            data = self._read_file(path)
            if data is None:
                continue
            try:
                expired = CacheEntry.from_bytes(data).is_expired(now)
            except (ValueError, KeyError, TypeError):
                expired = True
            if expired:
                path.unlink(missing_ok=True)
                removed.append(path.name)
        return removed

    def _trim_directory(self, max_bytes: int, keep: Optional[Path]) -> int:
        files = sorted(self._list_files(), key=lambda item: item[2])
        total = sum(size for _, size, _ in files)
        evicted = 0
        for path, size, _ in files:
            if total <= max_bytes:
                break
            if keep is not None and path == keep:
                continue
            path.unlink(missing_ok=True)
            total -= size
            evicted += 1
        return evicted
