"""Tests for the bounded result cache."""

import threading

import pytest

from contextual_chunker.core.result_cache import (
    FIFOEvictionPolicy,
    LRUEvictionPolicy,
    ResultCache,
    build_cache_key,
    create_eviction_policy,
)
from contextual_chunker.exceptions.system_exceptions import CacheError


class TestEvictionPolicies:

    def test_create_by_name(self):
        assert isinstance(create_eviction_policy("fifo"), FIFOEvictionPolicy)
        assert isinstance(create_eviction_policy("LRU"), LRUEvictionPolicy)

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown eviction policy"):
            create_eviction_policy("random")


class TestResultCache:

    def test_capacity_validated(self):
        with pytest.raises(ValueError):
            ResultCache(capacity=0)
        with pytest.raises(ValueError):
            ResultCache(capacity=True)

    def test_get_and_put(self):
        cache = ResultCache(capacity=2)
        assert cache.get("missing") is None
        cache.put("a", {"value": 1})
        assert cache.get("a") == {"value": 1}
        assert "a" in cache
        assert len(cache) == 1

    def test_values_are_copied(self):
        cache = ResultCache()
        value = {"chunks": [1, 2]}
        cache.put("key", value)
        value["chunks"].append(3)

        cached = cache.get("key")
        assert cached == {"chunks": [1, 2]}
        cached["chunks"].clear()
        assert cache.get("key") == {"chunks": [1, 2]}

    def test_fifo_ignores_hits(self):
        cache = ResultCache(capacity=2, eviction_policy="fifo")
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)
        assert "a" not in cache
        assert "b" in cache and "c" in cache

    def test_lru_keeps_recently_used(self):
        cache = ResultCache(capacity=2, eviction_policy=LRUEvictionPolicy())
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")
        cache.put("c", 3)
        assert "a" in cache
        assert "b" not in cache

    def test_overwrite_does_not_evict(self):
        cache = ResultCache(capacity=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("a", 10)
        assert len(cache) == 2
        assert cache.get("a") == 10
        assert cache.get_stats()["evictions"] == 0

    def test_stats(self):
        cache = ResultCache(capacity=1)
        cache.put("a", 1)
        cache.get("a")
        cache.get("b")
        cache.put("b", 2)

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["evictions"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["size"] == 1
        assert stats["policy"] == "FIFOEvictionPolicy"

    def test_clear_resets_entries_and_stats(self):
        cache = ResultCache()
        cache.put("a", 1)
        cache.get("a")
        cache.clear()
        assert len(cache) == 0
        assert cache.get_stats()["hits"] == 0

    def test_uncopyable_value_raises_cache_error(self):
        with pytest.raises(CacheError):
            ResultCache().put("lock", threading.Lock())

    def test_concurrent_puts_respect_capacity(self):
        cache = ResultCache(capacity=10)

        def fill(prefix):
            for i in range(50):
                cache.put(f"{prefix}-{i}", i)

        threads = [threading.Thread(target=fill, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 10


class TestBuildCacheKey:

    def test_key_is_deterministic(self):
        assert build_cache_key("text", "simple", {"a": 1}) == build_cache_key("text", "simple", {"a": 1})

    def test_strategy_and_context_change_key(self):
        base = build_cache_key("text", "simple", {})
        assert build_cache_key("text", "qa_pair_preserving", {}) != base
        assert build_cache_key("text", "simple", {"document_type": "faq"}) != base

    def test_content_length_distinguishes_shared_prefix(self):
        prefix = "x" * 1000
        assert build_cache_key(prefix, "simple", {}) != build_cache_key(prefix + "tail", "simple", {})

    def test_same_prefix_and_length_share_key(self):
        original = "x" * 1000 + "first ending"
        edited = "x" * 1000 + "other ending"
        assert build_cache_key(original, "simple", {}) == build_cache_key(edited, "simple", {})

    def test_version_option_separates_edited_documents(self):
        original = "x" * 1000 + "first ending"
        edited = "x" * 1000 + "other ending"
        assert build_cache_key(original, "simple", {"processing_options": {"version": 1}}) != build_cache_key(
            edited, "simple", {"processing_options": {"version": 2}}
        )

    def test_unserializable_context_raises(self):
        with pytest.raises(CacheError):
            build_cache_key("text", "simple", {"callback": object()})
