# src/cache/memory_store.py - v1
"""In-memory cache store (default CACHE_BACKEND=memory)."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from querycache.cache.base_cache_store import BaseCacheStore
from querycache.cache.models import CacheEntry

logger = logging.getLogger(__name__)


class InMemoryCacheStore(BaseCacheStore):
    """Dict-backed store keyed by the raw key (Fingerprint or any hashable)."""

    def __init__(self) -> None:
        super().__init__()
        self._entries: dict[Any, CacheEntry] = {}
        self._lock = threading.RLock()

    def get_entry(self, key: Any) -> CacheEntry | None:
        key = self._normalize_key(key)
        with self._lock:
            return self._entries.get(key)

    def set_entry(self, key: Any, entry: CacheEntry) -> None:
        key = self._normalize_key(key)
        if entry.key != key:
            entry = entry.model_copy(update={"key": key})
        with self._lock:
            self._entries[key] = entry
        self._notify("updated", [key])

    def query_entries(self, predicate: Callable[[Any], bool]) -> list[CacheEntry]:
        with self._lock:
            snapshot = list(self._entries.items())
        return [entry for key, entry in snapshot if predicate(key)]

    def invalidate(self, keys: Iterable[Any]) -> int:
        touched: list[Any] = []
        with self._lock:
            for key in map(self._normalize_key, keys):
                entry = self._entries.get(key)
                if entry is None:
                    continue
                self._entries[key] = entry.model_copy(update={"is_invalidated": True})
                touched.append(key)
        logger.debug("Invalidated %d entries", len(touched))
        self._notify("invalidated", touched)
        return len(touched)

    def reset(self, keys: Iterable[Any]) -> int:
        removed: list[Any] = []
        with self._lock:
            for key in map(self._normalize_key, keys):
                if self._entries.pop(key, None) is not None:
                    removed.append(key)
        logger.debug("Reset %d entries", len(removed))
        self._notify("reset", removed)
        return len(removed)

    def keys(self) -> list[Any]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
