import threading

import pytest

from blog_search.search.cache import QueryCache, make_cache_key
from blog_search.search.models import QueryResponse

from conftest import FakeClock


def _response(query: str) -> QueryResponse:
    return QueryResponse(results=(), total=0, query=query)


@pytest.fixture
def cache(clock):
    return QueryCache(ttl=300, max_size=3, clock=clock)


def test_set_then_get_returns_response(cache):
    response = _response("react")
    cache.set("react", response, {"limit": 10})

    assert cache.get("react", {"limit": 10}) is response


def test_key_normalizes_query_text(cache):
    response = _response("react")
    cache.set("  React ", response)

    assert cache.get("react") is response


def test_options_are_part_of_the_key(cache):
    cache.set("react", _response("react"), {"limit": 10})

    assert cache.get("react", {"limit": 20}) is None
    assert cache.get("react") is None


def test_option_order_does_not_matter():
    assert make_cache_key("q", {"a": 1, "b": 2}) == make_cache_key("q", {"b": 2, "a": 1})


def test_entry_expires_after_ttl(cache, clock):
    cache.set("react", _response("react"))

    clock.advance(299)
    assert cache.get("react") is not None

    clock.advance(1)
    assert cache.get("react") is None
    assert len(cache) == 0


def test_custom_ttl(cache, clock):
    cache.set("react", _response("react"), ttl=10)
    clock.advance(10)
    assert cache.get("react") is None


def test_capacity_evicts_oldest_insert(cache):
    for q in ("one", "two", "three"):
        cache.set(q, _response(q))
    # Reading does not refresh position: eviction is by insertion, not use
    cache.get("one")
    cache.set("four", _response("four"))

    assert len(cache) == 3
    assert cache.get("one") is None
    assert cache.get("four") is not None


def test_cleanup_purges_only_expired(cache, clock):
    cache.set("old", _response("old"))
    clock.advance(200)
    cache.set("new", _response("new"))
    clock.advance(150)

    assert cache.cleanup() == 1
    assert cache.get("old") is None
    assert cache.get("new") is not None


def test_clear(cache):
    cache.set("react", _response("react"))
    cache.clear()
    assert len(cache) == 0


def test_stats_track_hits_and_misses(cache, clock):
    cache.set("react", _response("react"))
    cache.get("react")
    cache.get("rust")
    clock.advance(5)

    stats = cache.stats()
    assert stats["size"] == 1
    assert stats["maxSize"] == 3
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["hitRate"] == 0.5
    assert stats["entries"][0]["age"] == 5
    assert stats["entries"][0]["expiresIn"] == 295


def test_invalid_max_size():
    with pytest.raises(ValueError):
        QueryCache(max_size=0)


def test_concurrent_sets_respect_capacity():
    cache = QueryCache(max_size=10, clock=FakeClock())

    def worker(prefix):
        for i in range(200):
            cache.set(f"{prefix}-{i}", _response(prefix))

    threads = [threading.Thread(target=worker, args=(str(n),)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 10
