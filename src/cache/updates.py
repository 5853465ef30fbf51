# src/cache/updates.py - v1
"""Local cache reads and copy-on-write writes.

Writes made here never trigger a fetch; live query handles observe them
through the store on their next read.

Updates are either a literal replacement value or a transform:

    set_cached(store, fp, {"message": "hi"})         # replace
    set_cached(store, fp, lambda d: d.update(n=2))    # mutate the working copy
    set_cached(store, fp, lambda d: {**d, "n": 2})    # return a new value

A transform receives a deep copy of the cached value. Returning ``None``
commits the (possibly mutated) copy, returning anything else commits that
value. Transforms against an entry without data are skipped.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Union

from querycache.cache.base_cache_store import BaseCacheStore
from querycache.cache.fingerprint import make_fingerprint
from querycache.cache.invalidation import InvalidationSpec, MatchAll, match_invalidation
from querycache.cache.models import CacheEntry, CachedPayload, Fingerprint, PageSequence

logger = logging.getLogger(__name__)

CacheUpdate = Union[Any, Callable[[Any], Any]]


def get_cached(store: BaseCacheStore, fingerprint: Fingerprint) -> Any | None:
    """Point read of the cached value, None when absent."""
    entry = store.get_entry(fingerprint)
    return entry.data if entry is not None else None


def get_cached_many(
    store: BaseCacheStore,
    route: str,
    scope: str,
    paginated: bool = False,
) -> list[CachedPayload]:
    """Every cached (payload, data) pair for ``route`` within one partition."""
    predicate = match_invalidation({route: MatchAll()}, scope, paginated)
    results: list[CachedPayload] = []
    for entry in store.query_entries(predicate):
        fingerprint = entry.fingerprint
        if fingerprint is not None:
            results.append(CachedPayload(payload=fingerprint.payload, data=entry.data))
    return results


def apply_update(current: Any, update: CacheUpdate) -> Any:
    """Compute the value ``update`` produces from ``current`` without mutating it."""
    if not callable(update):
        return copy.deepcopy(update)
    draft = copy.deepcopy(current)
    returned = update(draft)
    return draft if returned is None else returned


def set_cached(
    store: BaseCacheStore,
    fingerprint: Fingerprint,
    update: CacheUpdate,
) -> bool:
    """Write a new value for ``fingerprint``.

    Returns:
        True if the store was written, False for a no-op (transform against a
        missing value, literal None, or a value equal to the current one).
    """
    entry = store.get_entry(fingerprint)
    current = entry.data if entry is not None else None

    if callable(update) and current is None:
        logger.debug("No cached value for %s, update skipped", fingerprint.route)
        return False
    if not callable(update) and update is None:
        return False

    new_value = apply_update(current, update)
    if fingerprint.paginated and isinstance(new_value, dict):
        new_value = PageSequence.model_validate(new_value)

    if entry is not None and new_value == current:
        return False

    base = entry if entry is not None else CacheEntry(key=fingerprint)
    store.set_entry(
        fingerprint,
        base.model_copy(
            update={
                "data": new_value,
                "status": "success",
                "error": None,
                "error_message": None,
                "is_invalidated": False,
                "data_updated_at": datetime.now(timezone.utc),
            }
        ),
    )
    return True


class CacheUtils:
    """Cache helpers bound to one client scope.

    Routes and payloads are turned into fingerprints with this scope, so two
    clients sharing a store never read or invalidate each other's entries.
    """

    def __init__(self, store: BaseCacheStore, scope: str) -> None:
        self._store = store
        self._scope = scope

    @property
    def scope(self) -> str:
        return self._scope

    def fingerprint(self, route: str, payload: Any, paginated: bool = False) -> Fingerprint:
        return make_fingerprint(self._scope, route, payload, paginated)

    # --- Reads ---

    def get_query_data(self, route: str, payload: Any) -> Any | None:
        return get_cached(self._store, self.fingerprint(route, payload))

    def get_infinite_query_data(self, route: str, payload: Any) -> PageSequence | None:
        return get_cached(self._store, self.fingerprint(route, payload, paginated=True))

    def get_queries_data(self, route: str) -> list[CachedPayload]:
        return get_cached_many(self._store, route, self._scope)

    def get_infinite_queries_data(self, route: str) -> list[CachedPayload]:
        return get_cached_many(self._store, route, self._scope, paginated=True)

    # --- Writes ---

    def update_cache(self, route: str, payload: Any, updater: CacheUpdate) -> bool:
        return set_cached(self._store, self.fingerprint(route, payload), updater)

    def update_infinite_cache(self, route: str, payload: Any, updater: CacheUpdate) -> bool:
        return set_cached(
            self._store, self.fingerprint(route, payload, paginated=True), updater
        )

    # --- Invalidation ---

    def invalidate_queries(self, spec: InvalidationSpec) -> int:
        """Mark matching single-value entries stale; observers refetch."""
        return self._store.invalidate(self._matching(spec, paginated=False))

    def invalidate_infinite_queries(self, spec: InvalidationSpec) -> int:
        """Mark matching page-sequence entries stale; observers refetch."""
        return self._store.invalidate(self._matching(spec, paginated=True))

    def reset_queries(self, spec: InvalidationSpec) -> int:
        """Clear matching single-value entries back to their initial state."""
        return self._store.reset(self._matching(spec, paginated=False))

    def reset_infinite_queries(self, spec: InvalidationSpec) -> int:
        """Clear matching page-sequence entries back to their initial state."""
        return self._store.reset(self._matching(spec, paginated=True))

    def _matching(self, spec: InvalidationSpec, paginated: bool) -> list[Any]:
        predicate = match_invalidation(spec, self._scope, paginated)
        keys = [key for key in self._store.keys() if predicate(key)]
        logger.debug(
            "Matched %d entries (scope=%s, paginated=%s)", len(keys), self._scope, paginated
        )
        return keys
