"""
Bounded result caching for structure analyses and chunking results.

This module provides:
- ResultCache: thread-safe bounded map with hit/miss/eviction statistics
- FIFOEvictionPolicy: evicts the oldest inserted entry (default)
- LRUEvictionPolicy: evicts the least recently used entry
- build_cache_key: content + strategy + context key construction

Entries expire only through capacity-based eviction. Values are deep-copied
on the way in and out, so a hit returns the stored result unmodified.
"""

import copy
import hashlib
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Mapping, Optional, Union

from ..exceptions.system_exceptions import CacheError

logger = logging.getLogger(__name__)

CONTENT_DIGEST_PREFIX = 1000


@dataclass
class CacheEntry:
    """Cache entry with metadata."""
    value: Any
    timestamp: float
    access_count: int = 0


class EvictionPolicy(ABC):
    """Decides which key leaves a full cache."""

    @abstractmethod
    def record_insert(self, key: Hashable) -> None:
        """Register a newly inserted key."""

    @abstractmethod
    def record_access(self, key: Hashable) -> None:
        """Register a cache hit on key."""

    @abstractmethod
    def select_victim(self) -> Hashable:
        """Return the key to evict. The key is forgotten by the policy."""

    @abstractmethod
    def remove(self, key: Hashable) -> None:
        """Forget a key."""

    @abstractmethod
    def clear(self) -> None:
        """Forget all keys."""


class FIFOEvictionPolicy(EvictionPolicy):
    """Oldest-inserted-first eviction; hits do not change the order."""

    def __init__(self) -> None:
        self._order: "OrderedDict[Hashable, None]" = OrderedDict()

    def record_insert(self, key: Hashable) -> None:
        self._order.pop(key, None)
        self._order[key] = None

    def record_access(self, key: Hashable) -> None:
        pass

    def select_victim(self) -> Hashable:
        key, _ = self._order.popitem(last=False)
        return key

    def remove(self, key: Hashable) -> None:
        self._order.pop(key, None)

    def clear(self) -> None:
        self._order.clear()


class LRUEvictionPolicy(FIFOEvictionPolicy):
    """Least-recently-used eviction; a hit moves the key to the back."""

    def record_access(self, key: Hashable) -> None:
        if key in self._order:
            self._order.move_to_end(key)


EVICTION_POLICIES = {
    "fifo": FIFOEvictionPolicy,
    "lru": LRUEvictionPolicy,
}


def create_eviction_policy(name: str) -> EvictionPolicy:
    """
    Create an eviction policy by name.

    Raises:
        ValueError: If the name is not ``fifo`` or ``lru``
    """
    try:
        return EVICTION_POLICIES[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown eviction policy '{name}'. Valid policies: {', '.join(EVICTION_POLICIES)}"
        ) from None


class ResultCache:
    """
    Thread-safe bounded cache.

    Example:
        >>> cache = ResultCache(capacity=2)
        >>> cache.put("a", [1])
        >>> cache.get("a")
        [1]
        >>> cache.get_stats()["hits"]
        1
    """

    def __init__(
        self,
        capacity: int = 200,
        eviction_policy: Optional[Union[EvictionPolicy, str]] = None
    ) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"capacity must be a positive integer, got: {capacity}")

        if isinstance(eviction_policy, str):
            eviction_policy = create_eviction_policy(eviction_policy)

        self.capacity = capacity
        self.policy: EvictionPolicy = eviction_policy or FIFOEvictionPolicy()
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()
        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0
        }

    def get(self, key: Hashable) -> Optional[Any]:
        """Get a deep copy of the cached value, or None on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.stats["misses"] += 1
                return None

            entry.access_count += 1
            self.policy.record_access(key)
            self.stats["hits"] += 1
            return copy.deepcopy(entry.value)

    def put(self, key: Hashable, value: Any) -> None:
        """
        Store a deep copy of value, evicting when at capacity.

        Raises:
            CacheError: If the value cannot be copied
        """
        try:
            stored = copy.deepcopy(value)
        except (TypeError, copy.Error, RecursionError) as e:
            raise CacheError(f"Cannot cache value of type {type(value).__name__}: {e}") from e

        with self._lock:
            if key not in self._entries:
                while len(self._entries) >= self.capacity:
                    victim = self.policy.select_victim()
                    self._entries.pop(victim, None)
                    self.stats["evictions"] += 1
                    logger.debug(f"Evicted cache entry {victim}")

            self._entries[key] = CacheEntry(value=stored, timestamp=time.time())
            self.policy.record_insert(key)

    def clear(self) -> None:
        """Clear all entries and statistics."""
        with self._lock:
            self._entries.clear()
            self.policy.clear()
            for name in self.stats:
                self.stats[name] = 0

    def get_stats(self) -> Dict[str, Any]:
        """Hits, misses, evictions, hit rate and size."""
        with self._lock:
            lookups = self.stats["hits"] + self.stats["misses"]
            return {
                **self.stats,
                "hit_rate": self.stats["hits"] / lookups if lookups else 0.0,
                "size": len(self._entries),
                "capacity": self.capacity,
                "policy": type(self.policy).__name__,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries


def build_cache_key(content: str, strategy: Optional[str], context: Mapping[str, Any]) -> str:
    """
    Build a chunking cache key.

    The key hashes the first 1000 characters of the content together with the
    content length, the strategy name and a flat context mapping.

    Only the prefix is hashed, so two documents that share their first 1000
    characters and their length get the same key. An edit past that point
    which keeps the length unchanged is served the chunks of the earlier
    version. Callers that chunk documents edited in place should pass a
    primitive such as ``version`` in ``processing_options``, or clear the cache.

    Raises:
        CacheError: If the context is not JSON serializable
    """
    payload = {
        "content_digest": hashlib.md5(content[:CONTENT_DIGEST_PREFIX].encode("utf-8")).hexdigest(),
        "content_length": len(content),
        "strategy": strategy,
        "context": dict(context),
    }
    try:
        serialized = json.dumps(payload, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise CacheError(f"Cache key context is not serializable: {e}") from e
    return hashlib.md5(serialized.encode("utf-8")).hexdigest()
