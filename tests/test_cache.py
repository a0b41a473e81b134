from datetime import timedelta

import pytest

from goveebridge.cache import (
    Cache,
    CacheComputeResult,
    CacheGetOptions,
    CachedError,
    cache_file_name,
    cache_get,
    get_cache,
    invalidate_key,
    open_cache,
    purge_cache,
)


@pytest.fixture
def cache_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("GOVEE_CACHE_DIR", str(tmp_path))
    return tmp_path


def options(key="k", allow_stale=False):
    return CacheGetOptions(
        key=key,
        topic="devices",
        soft_ttl=timedelta(minutes=5),
        hard_ttl=timedelta(hours=1),
        negative_ttl=timedelta(minutes=1),
        allow_stale=allow_stale,
    )


class Counter:
    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def test_cache_file_name_uses_env(cache_dir):
    assert cache_file_name() == cache_dir / "govee2mqtt-cache.sqlite"


def test_put_get_delete_round_trip(tmp_path):
    with Cache(tmp_path / "c.sqlite") as store:
        store.put("t", "k", b"payload", timedelta(hours=1))
        assert store.get("t", "k") == b"payload"
        assert store.get("other", "k") is None
        store.delete("t", "k")
        assert store.get("t", "k") is None


def test_expired_entries_are_hidden(tmp_path):
    with Cache(tmp_path / "c.sqlite") as store:
        store.put("t", "k", b"old", timedelta(seconds=-1))
        assert store.get("t", "k") is None
        store.put("t", "forever", b"kept", None)
        assert store.get("t", "forever") == b"kept"


def test_data_survives_reopen(cache_dir):
    first = open_cache()
    first.put("t", "k", b"persisted", timedelta(hours=1))
    first.close()
    second = open_cache()
    try:
        assert second.get("t", "k") == b"persisted"
    finally:
        second.close()


def test_into_inner_returns_value():
    result = CacheComputeResult([1, 2], ttl=timedelta(seconds=3))
    assert result.into_inner() == [1, 2]


@pytest.mark.asyncio
async def test_value_is_computed_once(cache_dir):
    compute = Counter(CacheComputeResult({"a": 1}))
    assert await cache_get(options(), compute) == {"a": 1}
    assert await cache_get(options(), compute) == {"a": 1}
    assert compute.calls == 1


@pytest.mark.asyncio
async def test_errors_are_negatively_cached(cache_dir):
    compute = Counter(RuntimeError("boom"))
    with pytest.raises(CachedError, match="boom"):
        await cache_get(options(), compute)
    with pytest.raises(CachedError, match="boom"):
        await cache_get(options(), compute)
    assert compute.calls == 1


@pytest.mark.asyncio
async def test_custom_ttl_expiry_forces_recompute(cache_dir):
    compute = Counter(
        CacheComputeResult("first", ttl=timedelta(seconds=-1)),
        CacheComputeResult("second"),
    )
    assert await cache_get(options(), compute) == "first"
    assert await cache_get(options(), compute) == "second"
    assert compute.calls == 2


@pytest.mark.asyncio
async def test_stale_value_used_when_allowed(cache_dir):
    compute = Counter(
        CacheComputeResult("good", ttl=timedelta(seconds=-1)),
        RuntimeError("offline"),
    )
    opts = options(allow_stale=True)
    assert await cache_get(opts, compute) == "good"
    assert await cache_get(opts, compute) == "good"
    # The stale value is now fresh for the negative TTL
    assert await cache_get(opts, compute) == "good"
    assert compute.calls == 2


@pytest.mark.asyncio
async def test_stale_value_not_used_when_disallowed(cache_dir):
    compute = Counter(
        CacheComputeResult("good", ttl=timedelta(seconds=-1)),
        RuntimeError("offline"),
    )
    assert await cache_get(options(), compute) == "good"
    with pytest.raises(CachedError, match="offline"):
        await cache_get(options(), compute)


@pytest.mark.asyncio
async def test_invalidate_key_forces_recompute(cache_dir):
    compute = Counter(CacheComputeResult(1), CacheComputeResult(2))
    assert await cache_get(options(), compute) == 1
    invalidate_key("devices", "k")
    assert await cache_get(options(), compute) == 2


@pytest.mark.asyncio
async def test_corrupt_entry_is_recomputed(cache_dir):
    get_cache().put("devices", "k", b"not json", timedelta(hours=1))
    compute = Counter(CacheComputeResult("fresh"))
    assert await cache_get(options(), compute) == "fresh"
    assert compute.calls == 1


@pytest.mark.asyncio
async def test_purge_cache_empties_store(cache_dir):
    compute = Counter(CacheComputeResult("a"), CacheComputeResult("b"))
    assert await cache_get(options(), compute) == "a"
    purge_cache()
    assert cache_file_name().exists()
    assert await cache_get(options(), compute) == "b"


def test_purge_missing_file_raises(cache_dir):
    with pytest.raises(OSError, match="removing cache file"):
        purge_cache()