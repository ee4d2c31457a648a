import pytest

from onlyone.errors import DependencyDegraded
from onlyone.infra.cache import Cache
from onlyone.infra.redis import RedisProxy


class BrokenRedis:
    def __getattr__(self, item):
        async def _fail(*args, **kwargs):
            raise ConnectionError("redis down")

        return _fail


@pytest.mark.asyncio
async def test_cache_round_trips_json_values():
    cache = Cache()
    assert await cache.set("k", {"a": [1, 2]}, ttl=30)
    assert await cache.get("k") == {"a": [1, 2]}
    assert 0 < await cache.ttl("k") <= 30
    assert await cache.delete("k") == 1
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_incr_atomic_counts_and_sets_ttl_once(fake_redis):
    cache = Cache()
    assert await cache.incr_atomic("counter", ttl=60) == 1
    await fake_redis.expire("counter", 5)
    assert await cache.incr_atomic("counter", ttl=60) == 2
    assert await fake_redis.ttl("counter") <= 5


@pytest.mark.asyncio
async def test_sorted_set_helpers():
    cache = Cache()
    await cache.sorted_set_add("z", "a", 1, increment=True)
    await cache.sorted_set_add("z", "a", 1, increment=True)
    await cache.sorted_set_add("z", "b", 1, increment=True)
    assert await cache.top_n("z", 5) == [("a", 2.0), ("b", 1.0)]
    assert await cache.rank("z", "a") == 1
    assert await cache.rank("z", "b") == 2
    assert await cache.rank("z", "missing") is None


@pytest.mark.asyncio
async def test_unconfigured_cache_degrades_to_defaults():
    cache = Cache(RedisProxy(None))
    assert not cache.available
    assert await cache.get("k") is None
    assert await cache.set("k", 1) is False
    assert await cache.delete("k") == 0
    assert await cache.incr_atomic("k", ttl=5) is None
    assert await cache.top_n("z", 3) == []
    assert await cache.ping() is False


@pytest.mark.asyncio
async def test_cache_errors_never_propagate():
    cache = Cache(RedisProxy(BrokenRedis()))
    assert await cache.get("k") is None
    assert await cache.set("k", 1) is False
    assert await cache.incr_atomic("k", ttl=5) is None
    assert await cache.ttl("k") is None
    assert await cache.sorted_set_add("z", "a", 1) is None
    assert await cache.rank("z", "a") is None


@pytest.mark.asyncio
async def test_redis_failures_surface_as_dependency_degraded_inside_the_cache():
    cache = Cache(RedisProxy(BrokenRedis()))
    with pytest.raises(DependencyDegraded) as excinfo:
        await cache._run("get", "k", lambda: cache.redis.get("k"))
    assert excinfo.value.dependency == "cache"
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert await cache._guarded("get", "k", lambda: cache.redis.get("k"), "fallback") == "fallback"
