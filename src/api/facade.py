# src/api/facade.py - v1
"""Public API facade: one object per API client.

Usage:
    from querycache.api.facade import create_api_queries

    api = create_api_queries(name="items-api")
    query = api.query("GET /items/:id", {"id": "1"})
    await query.refetch()
    api.cache.update_cache("GET /items/:id", {"id": "1"}, lambda item: item.update(seen=True))

The client ``name`` is the scope of every fingerprint it creates, so
independently configured clients can share one store.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from querycache.api.models import QueryOptions, RouteRequest
from querycache.cache.base_cache_store import BaseCacheStore
from querycache.cache.cache_factory import create_cache_store
from querycache.cache.fingerprint import make_fingerprint
from querycache.cache.updates import CacheUtils
from querycache.combine.combination import CombinedQueriesResult, combine, combine_resolved
from querycache.config.settings import Settings
from querycache.query.infinite_query import InfiniteQuery, PageParamGetter
from querycache.query.mutation import Mutation
from querycache.query.query import Fetcher, Query, QueryFailed
from querycache.transport.base_transport import BaseTransport

logger = logging.getLogger(__name__)


class APIQueries:
    """Queries, mutations and cache helpers for one API client."""

    def __init__(
        self,
        name: str,
        transport: BaseTransport,
        store: BaseCacheStore,
    ) -> None:
        self._name = name
        self._transport = transport
        self._store = store
        self._cache = CacheUtils(store, name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def store(self) -> BaseCacheStore:
        return self._store

    @property
    def transport(self) -> BaseTransport:
        return self._transport

    @property
    def cache(self) -> CacheUtils:
        """Cache helpers scoped to this client."""
        return self._cache

    async def request(self, route: str, payload: Any) -> Any:
        """One-off call through the transport, bypassing the cache."""
        response = await self._transport.issue(route, payload)
        return response.data

    # --- Queries ---

    def query(
        self,
        route: str,
        payload: Any,
        options: QueryOptions | None = None,
    ) -> Query:
        """Live handle for ``route``/``payload``.

        With a running loop, a fetch is started right away when the entry is
        missing or stale.
        """
        options = options or QueryOptions()
        query = Query(
            make_fingerprint(self._name, route, payload),
            self._store,
            self._fetcher(route, payload),
        )
        return self._activate(query, options)

    async def fetch_query(self, route: str, payload: Any) -> Query:
        """Handle guaranteed to hold data: serves a fresh entry or fetches.

        Raises:
            Exception: The fetch failure (usually a TransportError).
        """
        query = Query(
            make_fingerprint(self._name, route, payload),
            self._store,
            self._fetcher(route, payload),
        )
        if query.is_stale:
            await query.fetch()
        if query.is_error:
            raise query.error or QueryFailed(route, query.entry)
        return query

    def infinite_query(
        self,
        route: str,
        payload: Any,
        *,
        initial_page_param: Any,
        get_next_page_param: PageParamGetter,
        get_previous_page_param: PageParamGetter | None = None,
        options: QueryOptions | None = None,
    ) -> InfiniteQuery:
        """Live handle over the page sequence of ``route``/``payload``."""
        options = options or QueryOptions()

        async def fetch_page(page_payload: Any) -> Any:
            return await self.request(route, page_payload)

        query = InfiniteQuery(
            make_fingerprint(self._name, route, payload, paginated=True),
            self._store,
            fetch_page,
            initial_page_param=initial_page_param,
            get_next_page_param=get_next_page_param,
            get_previous_page_param=get_previous_page_param,
        )
        return self._activate(query, options)

    def combined_queries(self, *routes: RouteRequest | tuple[Any, ...]) -> CombinedQueriesResult:
        """Start every query and combine their current states."""
        requests = [RouteRequest.coerce(r) for r in routes]
        queries = [self.query(r.route, r.payload, r.options) for r in requests]
        return combine(queries)

    async def fetch_combined_queries(
        self, *routes: RouteRequest | tuple[Any, ...]
    ) -> CombinedQueriesResult:
        """Await every query; raises the first failure, else all are resolved."""
        requests = [RouteRequest.coerce(r) for r in routes]
        queries = await asyncio.gather(
            *(self.fetch_query(r.route, r.payload) for r in requests)
        )
        return combine_resolved(queries)

    # --- Mutations ---

    def mutation(self, route: str, *, on_success: Any = None) -> Mutation:
        return Mutation(route, self._transport, scope=self._name, on_success=on_success)

    # --- Helpers ---

    def _fetcher(self, route: str, payload: Any) -> Fetcher:
        async def fetch() -> Any:
            return await self.request(route, payload)

        return fetch

    def _activate(self, query: Query, options: QueryOptions) -> Any:
        if options.observe:
            query.observe()
        if options.enabled and query.is_stale:
            try:
                query.refetch()
            except RuntimeError:
                logger.debug("No running loop, %s not fetched yet", query.fingerprint.route)
        return query


def create_api_queries(
    name: str | None = None,
    transport: BaseTransport | None = None,
    store: BaseCacheStore | None = None,
    settings: Settings | None = None,
    configure_logging: bool = False,
) -> APIQueries:
    """Build an APIQueries, filling missing collaborators from settings.

    Args:
        name: Client scope. Defaults to ``settings.client_name``.
        transport: Transport. Defaults to an HttpxTransport on ``api_base_url``.
        store: Cache store. Defaults to the configured backend.
        settings: Settings. Loaded from .env if None.
        configure_logging: Apply the logging settings to the querycache logger.
    """
    settings = settings or Settings()
    if configure_logging:
        from querycache.logging.logger import setup_logging_from_settings

        setup_logging_from_settings(settings)

    if transport is None:
        from querycache.transport.httpx_transport import HttpxTransport

        transport = HttpxTransport.from_settings(settings)

    api = APIQueries(
        name=name or settings.client_name,
        transport=transport,
        store=store if store is not None else create_cache_store(settings),
    )
    logger.info("API client ready: name=%s, store=%s", api.name, type(api.store).__name__)
    return api
