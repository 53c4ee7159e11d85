from doubanmeta.cache import ResultCache, cache_key


def test_get_before_ttl_hits(clock):
    cache = ResultCache(ttl=600, clock=clock)
    cache.insert(cache_key("movie", "1"), "record")
    clock.advance(599)
    assert cache.get(cache_key("movie", "1")) == "record"


def test_expired_entry_is_a_miss_and_dropped(clock):
    cache = ResultCache(ttl=600, clock=clock)
    cache.insert(cache_key("movie", "1"), "record")
    clock.advance(600)
    assert cache.get(cache_key("movie", "1")) is None
    assert len(cache) == 0


def test_reinsert_refreshes_ttl(clock):
    cache = ResultCache(ttl=10, clock=clock)
    cache.insert("k", 1)
    clock.advance(8)
    cache.insert("k", 2)
    clock.advance(8)
    assert cache.get("k") == 2


def test_capacity_evicts_least_recently_used(clock):
    cache = ResultCache(max_entries=2, clock=clock)
    cache.insert("a", 1)
    cache.insert("b", 2)
    assert cache.get("a") == 1  # "b" is now the oldest
    cache.insert("c", 3)
    assert len(cache) == 2
    assert cache.get("b") is None
    assert cache.get("a") == 1
    assert cache.get("c") == 3


def test_variant_is_part_of_the_key(clock):
    cache = ResultCache(clock=clock)
    cache.insert(cache_key("movie", "1", "l"), "large")
    assert cache.get(cache_key("movie", "1")) is None
    assert cache.get(cache_key("movie", "1", "l")) == "large"


def test_clear(clock):
    cache = ResultCache(clock=clock)
    cache.insert("a", 1)
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is None
