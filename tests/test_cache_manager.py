import asyncio
import datetime as dt
import json
import threading

import pytest

from cafeteria_client.cache_manager import CacheEntry, CacheManager, CachePolicy
from cafeteria_client.models import Campus, MealMenu


async def test_put_then_get_returns_value(cache):
    """测试写入后可以读取"""
    assert await cache.put("k1", {"a": 1, "b": [1, 2]}) is True
    assert await cache.get("k1") == {"a": 1, "b": [1, 2]}


async def test_missing_key_returns_default(cache):
    assert await cache.get("missing") is None
    assert await cache.get("missing", default="fallback") == "fallback"


async def test_entry_expires_after_ttl(cache, clock):
    """Fixed TTL: reads do not extend lifetime."""
    policy = CachePolicy(ttl_seconds=60, max_memory_bytes=1024, max_disk_bytes=0)
    await cache.put("k1", "value", policy)

    clock.advance(59)
    assert await cache.get("k1") == "value"

    clock.advance(2)
    assert await cache.get("k1") is None
    assert not (cache.directory / "k1.cache").exists()


async def test_hit_and_miss_accounting(cache):
    await cache.put("k1", 1)
    await cache.get("k1")
    await cache.get("k1")
    await cache.get("nope")

    stats = await cache.get_stats()
    assert stats.hits == 2
    assert stats.misses == 1
    assert stats.hit_rate == 2 / 3
    assert stats.memory_entry_count == 1
    assert stats.disk_entry_count == 1


async def test_failed_disk_write_is_not_cached(cache, monkeypatch):
    """A failing disk write reports False and a later get misses."""
    def broken_write(path, data, disk_limit):
        raise OSError("disk full")

    monkeypatch.setattr(cache, "_write_file", broken_write)

    assert await cache.put("k1", "value") is False
    assert await cache.get("k1") is None


async def test_unserializable_value_is_not_cached(cache):
    assert await cache.put("k1", object()) is False
    assert await cache.get("k1") is None


async def test_disk_hit_promotes_to_memory(tmp_path, clock):
    directory = tmp_path / "cache"
    first = CacheManager(directory, cleanup_interval=0, clock=clock)
    await first.put("k1", {"x": 1})

    second = CacheManager(directory, cleanup_interval=0, clock=clock)
    assert (await second.get_stats()).memory_entry_count == 0

    assert await second.get("k1") == {"x": 1}
    stats = await second.get_stats()
    assert stats.memory_entry_count == 1
    assert stats.hits == 1

    envelope = json.loads((directory / "k1.cache").read_text(encoding="utf-8"))
    assert envelope["access_count"] == 1
    assert set(envelope) == {"created_at", "expires_at", "access_count", "last_accessed_at", "payload"}


async def test_corrupt_disk_entry_is_a_miss_and_removed(cache):
    path = cache.directory / "bad.cache"
    path.write_bytes(b"not json at all")

    assert await cache.get("bad") is None
    assert not path.exists()
    assert (await cache.get_stats()).misses == 1


async def test_type_mismatch_is_a_miss(cache):
    await cache.put("k1", "not a menu")
    assert await cache.get("k1", MealMenu) is None
    assert (await cache.get_stats()).misses == 1


async def test_remove_expired_sweeps_both_tiers(cache, clock):
    await cache.put("short", 1, CachePolicy.SHORT_TERM)
    await cache.put("long", 2, CachePolicy.LONG_TERM)

    clock.advance(CachePolicy.SHORT_TERM.ttl_seconds + 1)
    removed = await cache.remove_expired()

    assert removed == 1
    stats = await cache.get_stats()
    assert stats.memory_entry_count == 1
    assert stats.disk_entry_count == 1
    assert await cache.get("long") == 2


async def test_clear_resets_everything(cache):
    await cache.put("k1", 1)
    await cache.put("k2", 2)
    await cache.get("k1")
    await cache.get("nope")

    await cache.clear()

    stats = await cache.get_stats()
    assert stats.hits == 0
    assert stats.misses == 0
    assert stats.memory_entry_count == 0
    assert stats.disk_entry_count == 0


async def test_remove_and_exists(cache):
    await cache.put("k1", 1)
    assert await cache.exists("k1")

    await cache.remove("k1")
    assert not await cache.exists("k1")
    await cache.remove("k1")


async def test_exists_does_not_count(cache):
    await cache.put("k1", 1)
    await cache.exists("k1")
    await cache.exists("nope")
    stats = await cache.get_stats()
    assert (stats.hits, stats.misses) == (0, 0)


async def test_memory_tier_entry_limit(tmp_path, clock):
    cache = CacheManager(tmp_path, memory_max_entries=2, cleanup_interval=0, clock=clock)
    for key in ("a", "b", "c"):
        await cache.put(key, key)

    stats = await cache.get_stats()
    assert stats.memory_entry_count == 2
    assert stats.disk_entry_count == 3
    # evicted from memory, still served from disk
    assert await cache.get("a") == "a"


async def test_oversized_entry_stays_on_disk_only(tmp_path, clock):
    cache = CacheManager(tmp_path, memory_max_bytes=64, cleanup_interval=0, clock=clock)
    assert await cache.put("big", "x" * 500) is True

    assert (await cache.get_stats()).memory_entry_count == 0
    assert await cache.get("big") == "x" * 500


async def test_disk_limit_trims_oldest_files(tmp_path, clock):
    cache = CacheManager(tmp_path, cleanup_interval=0, clock=clock)
    for key in ("a", "b", "c"):
        await cache.put(key, "y" * 100)

    evicted = await cache.enforce_disk_limit(1)
    assert evicted == 3
    assert (await cache.get_stats()).disk_entry_count == 0


async def test_invalid_key_is_not_cached(cache):
    assert await cache.put("../escape", 1) is False
    assert await cache.get("../escape") is None


async def test_menu_cache(cache, clock):
    menu = MealMenu(
        id="m1",
        date=dt.date(2025, 3, 14),
        campus=Campus.SEOUL,
        itemsA=["rice", "soup"],
        items_b=["noodles"],
        created_at=dt.datetime(2025, 3, 13, 9, 0),
        updatedAt="2025-03-13T09:30:00"
    )
    assert await cache.cache_menu(menu, "user-1") is True
    assert (cache.directory / "menu_user-1_seoul_2025-03-14.cache").exists()

    cached = await cache.get_cached_menu("user-1", Campus.SEOUL, dt.date(2025, 3, 14))
    assert cached == menu
    assert await cache.get_cached_menu("user-1", Campus.GUMI, dt.date(2025, 3, 14)) is None

    # long-term policy outlives the default ttl
    clock.advance(CachePolicy.DEFAULT.ttl_seconds + 1)
    assert await cache.get_cached_menu("user-1", "seoul", dt.date(2025, 3, 14)) == menu


async def test_cleanup_loop_lifecycle(tmp_path, clock):
    cache = CacheManager(tmp_path, cleanup_interval=3600, clock=clock)
    await cache.start()
    assert cache._cleanup_task is not None
    await cache.stop()
    assert cache._cleanup_task is None


async def test_memory_hit_that_outgrows_memory_tier(tmp_path, clock):
    """测试访问计数增长导致条目超出内存上限时仍然命中"""
    sizing = CacheManager(tmp_path / "sizing", cleanup_interval=0, clock=clock)
    await sizing.put("k1", "v")
    envelope_size = (await sizing.get_stats()).memory_bytes

    cache = CacheManager(tmp_path / "tight", memory_max_bytes=envelope_size, cleanup_interval=0, clock=clock)
    await cache.put("k1", "v")
    assert (await cache.get_stats()).memory_entry_count == 1

    # access_count 9 -> 10 adds a byte to the envelope
    for _ in range(12):
        assert await cache.get("k1") == "v"

    stats = await cache.get_stats()
    assert stats.hits == 12
    assert stats.misses == 0


async def test_concurrent_puts_and_gets(cache):
    puts = [cache.put("shared", i) for i in range(20)]
    puts += [cache.put(f"key-{i}", i) for i in range(20)]
    gets = [cache.get("shared") for _ in range(15)]
    gets += [cache.get(f"key-{i}") for i in range(20)]

    results = await asyncio.gather(*puts, *gets)
    put_results, get_results = results[:len(puts)], results[len(puts):]

    assert all(put_results)
    assert all(r is None or r in range(20) for r in get_results)

    stats = await cache.get_stats()
    assert stats.hits + stats.misses == len(gets)
    assert stats.disk_entry_count == 21
    assert await cache.get("shared") in range(20)
    for i in range(20):
        assert await cache.get(f"key-{i}") == i
    for path in cache.directory.glob("*.cache"):
        CacheEntry.from_bytes(path.read_bytes())


async def test_cancelled_put_leaves_nothing_behind(cache, monkeypatch):
    started = threading.Event()
    release = threading.Event()
    write_file = cache._write_file

    def slow_write(path, data, disk_limit):
        started.set()
        release.wait(5)
        return write_file(path, data, disk_limit)

    monkeypatch.setattr(cache, "_write_file", slow_write)

    task = asyncio.create_task(cache.put("k1", "value"))
    assert await asyncio.to_thread(started.wait, 5)
    task.cancel()
    release.set()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert not (cache.directory / "k1.cache").exists()
    assert await cache.get("k1") is None
