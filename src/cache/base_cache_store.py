# src/cache/base_cache_store.py - v1
"""Abstract cache store interface.

The store is a flat association from keys to CacheEntry values. It may be
shared with code that keys entries by something other than a Fingerprint;
implementations must keep such entries intact and hand them to predicates
unchanged.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from querycache.cache.fingerprint import coerce_fingerprint
from querycache.cache.models import CacheEntry, StoreEvent, StoreEventKind

logger = logging.getLogger(__name__)

StoreListener = Callable[[StoreEvent], None]


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends.

    Conflicting reads and writes are serialised by each implementation.
    Listeners are notified after the mutation is committed, outside any lock.
    """

    def __init__(self) -> None:
        self._listeners: list[StoreListener] = []
        self._listeners_lock = threading.Lock()

    @abstractmethod
    def get_entry(self, key: Any) -> CacheEntry | None:
        """Retrieve the entry stored under ``key``."""

    @abstractmethod
    def set_entry(self, key: Any, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key`` (upsert)."""

    @abstractmethod
    def query_entries(self, predicate: Callable[[Any], bool]) -> list[CacheEntry]:
        """Return every entry whose key satisfies ``predicate``."""

    @abstractmethod
    def invalidate(self, keys: Iterable[Any]) -> int:
        """Mark entries stale. Returns the number of entries affected."""

    @abstractmethod
    def reset(self, keys: Iterable[Any]) -> int:
        """Drop entries back to their initial (empty) state. Returns count."""

    @abstractmethod
    def keys(self) -> list[Any]:
        """Snapshot of every key currently held."""

    # --- Change notification ---

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: StoreEventKind, keys: Iterable[Any]) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for key in keys:
            event = StoreEvent(kind=kind, key=key)
            for listener in listeners:
                try:
                    listener(event)
                except Exception:
                    logger.exception("Store listener failed on %s event", kind)

    @staticmethod
    def _normalize_key(key: Any) -> Any:
        """Fingerprint mappings address the same slot as the Fingerprint itself."""
        fingerprint = coerce_fingerprint(key)
        return fingerprint if fingerprint is not None else key
