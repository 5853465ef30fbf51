# src/query/infinite_query.py - v1
"""Live handle over a cursor-paginated cache entry.

The cached value is a PageSequence. Each page is requested with the base
payload merged with a page-param fragment:

    initial_page_param={"cursor": None}
    get_next_page_param=lambda page: {"cursor": page["next"]} if page["next"] else None
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from querycache.cache.base_cache_store import BaseCacheStore
from querycache.cache.models import Fingerprint, PageSequence
from querycache.query.query import Query

logger = logging.getLogger(__name__)

PageFetcher = Callable[[Any], Awaitable[Any]]
PageParamGetter = Callable[[Any], Any]


class InfiniteQuery(Query):
    """Paginated variant of Query; ``data`` is a PageSequence."""

    def __init__(
        self,
        fingerprint: Fingerprint,
        store: BaseCacheStore,
        page_fetcher: PageFetcher,
        *,
        initial_page_param: Any,
        get_next_page_param: PageParamGetter,
        get_previous_page_param: PageParamGetter | None = None,
    ) -> None:
        if not fingerprint.paginated:
            raise ValueError("InfiniteQuery requires a paginated fingerprint")
        super().__init__(fingerprint, store, self._load_all)
        self._page_fetcher = page_fetcher
        self._initial_page_param = initial_page_param
        self._get_next_page_param = get_next_page_param
        self._get_previous_page_param = get_previous_page_param

    @property
    def data(self) -> PageSequence | None:
        return super().data

    @property
    def has_next_page(self) -> bool:
        data = self.data
        if data is None or not data.pages:
            return False
        return self._get_next_page_param(data.pages[-1]) is not None

    @property
    def has_previous_page(self) -> bool:
        data = self.data
        if data is None or not data.pages or self._get_previous_page_param is None:
            return False
        return self._get_previous_page_param(data.pages[0]) is not None

    async def fetch_next_page(self) -> PageSequence | None:
        """Append the page after the last one. No-op when there is none."""
        if self.data is None:
            return await self.fetch()
        return await self._run(self._load_next)

    async def fetch_previous_page(self) -> PageSequence | None:
        """Prepend the page before the first one. No-op when there is none."""
        if self.data is None:
            return await self.fetch()
        return await self._run(self._load_previous)

    # --- Loaders (run inside Query._run) ---

    async def _load_all(self) -> PageSequence:
        """First page, or every known page again in order."""
        current = self.data
        params = list(current.page_params) if current and current.page_params else [
            self._initial_page_param
        ]
        pages = [await self._fetch_page(param) for param in params]
        return PageSequence(pages=pages, page_params=params)

    async def _load_next(self) -> PageSequence:
        current = self.data or PageSequence()
        param = self._get_next_page_param(current.pages[-1]) if current.pages else None
        if param is None:
            logger.debug("No next page for %s", self.fingerprint.route)
            return current
        page = await self._fetch_page(param)
        return PageSequence(
            pages=[*current.pages, page], page_params=[*current.page_params, param]
        )

    async def _load_previous(self) -> PageSequence:
        current = self.data or PageSequence()
        if self._get_previous_page_param is None or not current.pages:
            return current
        param = self._get_previous_page_param(current.pages[0])
        if param is None:
            logger.debug("No previous page for %s", self.fingerprint.route)
            return current
        page = await self._fetch_page(param)
        return PageSequence(
            pages=[page, *current.pages], page_params=[param, *current.page_params]
        )

    async def _fetch_page(self, page_param: Any) -> Any:
        payload = self.fingerprint.payload
        if isinstance(payload, Mapping) and isinstance(page_param, Mapping):
            return await self._page_fetcher({**payload, **page_param})
        return await self._page_fetcher(page_param if page_param is not None else payload)
