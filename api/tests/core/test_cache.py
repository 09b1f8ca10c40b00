from app.core.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTTLCache:
    def test_hit_within_ttl(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("EUR-USD", 1.08)
        clock.now = 59
        assert cache.get("EUR-USD") == 1.08
        assert "EUR-USD" in cache

    def test_expires_at_ttl(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        cache.set("EUR-USD", 1.08)
        clock.now = 60
        assert cache.get("EUR-USD") is None
        assert "EUR-USD" not in cache

    def test_default_for_missing(self):
        assert TTLCache(60).get("nope", "fallback") == "fallback"

    def test_cached_falsy_value_is_a_hit(self):
        cache = TTLCache(60)
        cache.set("empty", [])
        assert "empty" in cache

    def test_clear(self):
        cache = TTLCache(60)
        cache.set("a", 1)
        cache.clear()
        assert cache.get("a") is None

    def test_writes_sweep_expired_entries(self):
        clock = FakeClock()
        cache = TTLCache(60, clock=clock)
        for query in ("apple", "appl", "app"):
            cache.set(query, [])
        clock.now = 30
        cache.set("microsoft", [])
        clock.now = 61
        cache.set("tesla", [])
        assert len(cache) == 2
        assert "microsoft" in cache
        assert "apple" not in cache
