# src/query/query.py - v1
"""Live query handle over one cache entry.

A Query never keeps its own copy of the result: status, data and error are
read from the store on every access, so cache updates made elsewhere are
visible immediately and without a round trip.

Usage:
    query = Query(fingerprint, store, fetcher)
    await query.fetch()
    query.status, query.data
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from querycache.cache.base_cache_store import BaseCacheStore
from querycache.cache.models import CacheEntry, Fingerprint, QueryStatus, StoreEvent
from querycache.logging.context import set_request_context
from querycache.logging.logger import KEY_LENGTH

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


class QueryFailed(Exception):
    """Entry is in error but the original exception is not available.

    Raised for entries read back from a persistent store, which only keeps
    the error message.
    """

    def __init__(self, route: str, entry: CacheEntry | None = None) -> None:
        self.route = route
        self.error_message = entry.error_message if entry is not None else None
        super().__init__(f"Query {route} failed: {self.error_message or 'unknown error'}")


class Query:
    """Handle for one fingerprint: fetches through ``fetcher``, reads from ``store``."""

    def __init__(
        self,
        fingerprint: Fingerprint,
        store: BaseCacheStore,
        fetcher: Fetcher,
    ) -> None:
        self._fingerprint = fingerprint
        self._store = store
        self._fetcher = fetcher
        self._task: asyncio.Task[Any] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._last_error: BaseException | None = None

    # --- State (read live from the store) ---

    @property
    def fingerprint(self) -> Fingerprint:
        return self._fingerprint

    @property
    def entry(self) -> CacheEntry | None:
        return self._store.get_entry(self._fingerprint)

    @property
    def status(self) -> QueryStatus:
        entry = self.entry
        return "pending" if entry is None else entry.status

    @property
    def data(self) -> Any:
        entry = self.entry
        return None if entry is None else entry.data

    @property
    def error(self) -> BaseException | None:
        """The failure of the entry, or None unless ``status == "error"``.

        Persistent stores drop exception objects; the last failure seen by
        this handle fills in for them.
        """
        entry = self.entry
        if entry is None or entry.status != "error":
            return None
        return entry.error if entry.error is not None else self._last_error

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def is_fetching(self) -> bool:
        entry = self.entry
        return entry is not None and entry.fetch_status == "fetching"

    @property
    def is_refetching(self) -> bool:
        """Fetching while a previous result (or error) is already held."""
        entry = self.entry
        return (
            entry is not None
            and entry.fetch_status == "fetching"
            and entry.status != "pending"
        )

    @property
    def is_stale(self) -> bool:
        entry = self.entry
        return entry is None or entry.is_invalidated or entry.status != "success"

    # --- Fetching ---

    async def fetch(self) -> Any:
        """Fetch and store the result. Returns the data, or None on failure.

        A failure is recorded on the entry (``status == "error"``) and kept
        available as ``self.error``.
        """
        return await self._run(self._fetcher)

    def refetch(self) -> asyncio.Task[Any]:
        """Schedule a fetch on the running loop; reuses one already in flight.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.fetch())
        return self._task

    async def _run(self, load: Fetcher) -> Any:
        fp = self._fingerprint
        set_request_context(fp.scope, fp.route, fp.digest[:KEY_LENGTH])
        self._write(fetch_status="fetching")
        try:
            data = await load()
        except asyncio.CancelledError:
            self._write(fetch_status="idle")
            raise
        except Exception as exc:
            self._last_error = exc
            logger.warning("Fetch failed for %s: %s", fp.route, exc, extra={"fingerprint": fp})
            self._write(
                status="error",
                error=exc,
                error_message=str(exc),
                fetch_status="idle",
            )
            return None

        self._write(
            status="success",
            data=data,
            error=None,
            error_message=None,
            fetch_status="idle",
            is_invalidated=False,
            data_updated_at=datetime.now(timezone.utc),
            fetch_count=self._fetch_count() + 1,
        )
        return data

    def _fetch_count(self) -> int:
        entry = self.entry
        return 0 if entry is None else entry.fetch_count

    def _write(self, **update: Any) -> None:
        # Re-read: the entry may have changed while the fetch was in flight.
        current = self.entry or CacheEntry(key=self._fingerprint)
        self._store.set_entry(self._fingerprint, current.model_copy(update=update))

    # --- Observation ---

    def observe(self) -> Query:
        """Refetch whenever this entry is invalidated or reset."""
        if self._unsubscribe is None:
            self._unsubscribe = self._store.subscribe(self._on_store_event)
        return self

    def close(self) -> None:
        """Stop observing the store."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_event(self, event: StoreEvent) -> None:
        if event.kind == "updated" or event.key != self._fingerprint:
            return
        try:
            self.refetch()
        except RuntimeError:
            logger.debug("No running loop, %s stays stale until next fetch", self._fingerprint.route)

    async def __aenter__(self) -> Query:
        return self.observe()

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(route={self._fingerprint.route!r}, status={self.status!r})"
