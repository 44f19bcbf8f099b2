"""Tests for the keyed TTL cache."""

from unittest.mock import patch

from estat.utils.cache import TTLCache


class TestTTLCache:

    def test_default_key_roundtrip(self):
        cache = TTLCache(ttl=60)
        assert cache.get() == (False, None)

        cache.set([1, 2])

        assert cache.get() == (True, [1, 2])

    def test_expiry(self):
        cache = TTLCache(ttl=10)
        with patch("estat.utils.cache.time.monotonic", return_value=100.0):
            cache.set("data", "k")
        with patch("estat.utils.cache.time.monotonic", return_value=109.0):
            assert cache.get("k") == (True, "data")
        with patch("estat.utils.cache.time.monotonic", return_value=110.0):
            assert cache.get("k") == (False, None)
        assert len(cache) == 0

    def test_empty_list_is_a_hit(self):
        cache = TTLCache(ttl=60)
        cache.set([])
        assert cache.get() == (True, [])

    def test_oldest_entry_evicted(self):
        cache = TTLCache(ttl=60, max_entries=2)
        with patch("estat.utils.cache.time.monotonic", side_effect=[1.0, 2.0, 3.0, 4.0, 5.0]):
            cache.set("a", "first")
            cache.set("b", "second")
            cache.set("c", "third")

            assert cache.get("first") == (False, None)
            assert cache.get("third") == (True, "c")

    def test_invalidate(self):
        cache = TTLCache(ttl=60)
        cache.set(1, "a")
        cache.set(2, "b")

        cache.invalidate("a")
        assert cache.get("a") == (False, None)
        assert cache.get("b") == (True, 2)

        cache.invalidate()
        assert len(cache) == 0
