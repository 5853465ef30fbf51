# tests/unit/api/test_unit_facade.py - v1
"""Tests for api/facade.py - APIQueries over a fake transport."""

from __future__ import annotations

import asyncio
import logging

import pytest

from querycache.api.facade import APIQueries, create_api_queries
from querycache.api.models import QueryOptions
from querycache.cache.memory_store import InMemoryCacheStore
from querycache.config.settings import Settings
from querycache.transport.errors import TransportError
from querycache.transport.httpx_transport import HttpxTransport

ITEM = "GET /items/:id"
LIST = "GET /items"


async def _settle() -> None:
    """Wait for the background fetches started so far."""
    current = asyncio.current_task()
    for _ in range(3):
        pending = [t for t in asyncio.all_tasks() if t is not current and not t.done()]
        if not pending:
            return
        await asyncio.wait(pending, timeout=1)


@pytest.fixture
def api(fake_transport, store) -> APIQueries:
    return APIQueries("items-api", fake_transport, store)


class TestAccessors:
    def test_properties(self, api, fake_transport, store):
        assert api.name == "items-api"
        assert api.transport is fake_transport
        assert api.store is store
        assert api.cache.scope == "items-api"

    @pytest.mark.asyncio
    async def test_request_bypasses_cache(self, api, store):
        assert await api.request(ITEM, {"id": "1"}) == {"id": "1", "name": "item 1"}
        assert store.keys() == []


class TestQuery:
    @pytest.mark.asyncio
    async def test_starts_fetch(self, api, fake_transport):
        query = api.query(ITEM, {"id": "1"})
        assert query.is_pending
        await _settle()
        assert query.data == {"id": "1", "name": "item 1"}
        assert fake_transport.calls_for(ITEM) == [{"id": "1"}]
        query.close()

    @pytest.mark.asyncio
    async def test_fresh_entry_not_refetched(self, api, fake_transport):
        api.cache.update_cache(ITEM, {"id": "1"}, {"id": "1", "name": "cached"})
        query = api.query(ITEM, {"id": "1"})
        await _settle()
        assert query.data["name"] == "cached"
        assert fake_transport.calls == []

    @pytest.mark.asyncio
    async def test_disabled(self, api, fake_transport):
        query = api.query(ITEM, {"id": "1"}, QueryOptions(enabled=False))
        await _settle()
        assert query.is_pending
        assert fake_transport.calls == []

    @pytest.mark.asyncio
    async def test_invalidation_refetches_observed_query(self, api, fake_transport):
        query = api.query(ITEM, {"id": "1"})
        await _settle()
        assert api.cache.invalidate_queries({ITEM: [{"id": "1"}]}) == 1
        await _settle()
        assert len(fake_transport.calls_for(ITEM)) == 2
        assert not query.is_stale
        query.close()

    @pytest.mark.asyncio
    async def test_not_observed(self, api, fake_transport):
        api.query(ITEM, {"id": "1"}, QueryOptions(observe=False))
        await _settle()
        api.cache.invalidate_queries({ITEM: "all"})
        await _settle()
        assert len(fake_transport.calls_for(ITEM)) == 1

    def test_without_loop_does_not_fetch(self, api, fake_transport):
        query = api.query(ITEM, {"id": "1"}, QueryOptions(observe=False))
        assert query.is_pending
        assert fake_transport.calls == []


class TestFetchQuery:
    @pytest.mark.asyncio
    async def test_returns_resolved_handle(self, api):
        query = await api.fetch_query(ITEM, {"id": "2"})
        assert query.is_success
        assert query.data["name"] == "item 2"

    @pytest.mark.asyncio
    async def test_uses_fresh_cache(self, api, fake_transport):
        await api.fetch_query(ITEM, {"id": "2"})
        await api.fetch_query(ITEM, {"id": "2"})
        assert len(fake_transport.calls) == 1

    @pytest.mark.asyncio
    async def test_raises_fetch_error(self, api, make_transport, store):
        error = TransportError(ITEM, 500)
        api = APIQueries("items-api", make_transport({ITEM: error}), store)
        with pytest.raises(TransportError) as excinfo:
            await api.fetch_query(ITEM, {"id": "1"})
        assert excinfo.value is error

    @pytest.mark.asyncio
    async def test_raises_real_error_with_persistent_store(self, make_transport, tmp_path):
        from querycache.cache.sqlite_store import SqliteCacheStore

        store = SqliteCacheStore(tmp_path / "cache.db")
        error = TransportError(ITEM, 503)
        api = APIQueries("items-api", make_transport({ITEM: error}), store)
        with pytest.raises(TransportError) as excinfo:
            await api.fetch_query(ITEM, {"id": "1"})
        assert excinfo.value is error
        assert store.get_entry(api.cache.fingerprint(ITEM, {"id": "1"})).error is None
        store.close()


class TestInfiniteQuery:
    @pytest.mark.asyncio
    async def test_pages_through_transport(self, make_transport, store):
        def pages(payload):
            cursor = payload.get("cursor")
            return {"items": [cursor or "first"], "next": None if cursor else "c2"}

        transport = make_transport({LIST: pages})
        api = APIQueries("items-api", transport, store)
        query = api.infinite_query(
            LIST,
            {"q": "x"},
            initial_page_param={"cursor": None},
            get_next_page_param=lambda page: {"cursor": page["next"]} if page["next"] else None,
        )
        await _settle()
        await query.fetch_next_page()

        assert [p["items"] for p in query.data.pages] == [["first"], ["c2"]]
        assert transport.calls_for(LIST) == [{"q": "x", "cursor": None}, {"q": "x", "cursor": "c2"}]
        assert api.cache.get_infinite_query_data(LIST, {"q": "x"}) == query.data
        assert api.cache.get_query_data(LIST, {"q": "x"}) is None
        query.close()


class TestCombined:
    @pytest.mark.asyncio
    async def test_combined_queries(self, api):
        result = api.combined_queries((ITEM, {"id": "1"}), (ITEM, {"id": "2"}))
        assert result.status == "pending"
        await _settle()

        refreshed = api.combined_queries(
            (ITEM, {"id": "1"}, {"observe": False}), (ITEM, {"id": "2"}, {"observe": False})
        )
        assert refreshed.status == "success"
        assert [d["id"] for d in refreshed.data] == ["1", "2"]
        for query in result.queries:
            query.close()

    @pytest.mark.asyncio
    async def test_combined_error_precedence(self, make_transport, store):
        transport = make_transport(
            {ITEM: lambda p: {"id": p["id"]}, LIST: TransportError(LIST, 500)}
        )
        api = APIQueries("items-api", transport, store)
        api.combined_queries((ITEM, {"id": "1"}), (LIST, None))
        await _settle()
        result = api.combined_queries(
            (ITEM, {"id": "1"}, {"enabled": False}), (LIST, None, {"enabled": False})
        )
        assert result.status == "error"
        assert result.data is None

    @pytest.mark.asyncio
    async def test_fetch_combined_queries(self, api):
        result = await api.fetch_combined_queries((ITEM, {"id": "1"}), (LIST, None))
        assert result.is_success
        assert result.data == [{"id": "1", "name": "item 1"}, [{"id": "1"}, {"id": "2"}]]

    @pytest.mark.asyncio
    async def test_fetch_combined_raises_first_error(self, make_transport, store):
        transport = make_transport({ITEM: TransportError(ITEM, 404)})
        api = APIQueries("items-api", transport, store)
        with pytest.raises(TransportError):
            await api.fetch_combined_queries((ITEM, {"id": "1"}))


class TestMutation:
    @pytest.mark.asyncio
    async def test_on_success_invalidates(self, make_transport, store):
        transport = make_transport(
            {ITEM: lambda p: {"id": p["id"]}, "PATCH /items/:id": lambda p: p}
        )
        api = APIQueries("items-api", transport, store)
        await api.fetch_query(ITEM, {"id": "1"})

        mutation = api.mutation(
            "PATCH /items/:id",
            on_success=lambda data, payload: api.cache.invalidate_queries(
                {ITEM: [{"id": payload["id"]}]}
            ),
        )
        await mutation.mutate({"id": "1", "name": "x"})
        assert api.cache.fingerprint(ITEM, {"id": "1"}) in store.keys()
        assert store.get_entry(api.cache.fingerprint(ITEM, {"id": "1"})).is_invalidated


class TestScopes:
    @pytest.mark.asyncio
    async def test_two_clients_share_store(self, make_transport):
        store = InMemoryCacheStore()
        a = APIQueries("a", make_transport({ITEM: {"from": "a"}}), store)
        b = APIQueries("b", make_transport({ITEM: {"from": "b"}}), store)
        await a.fetch_query(ITEM, {"id": "1"})
        await b.fetch_query(ITEM, {"id": "1"})

        assert a.cache.invalidate_queries({ITEM: "all"}) == 1
        assert a.cache.get_query_data(ITEM, {"id": "1"}) == {"from": "a"}
        assert b.cache.get_query_data(ITEM, {"id": "1"}) == {"from": "b"}
        assert not store.get_entry(b.cache.fingerprint(ITEM, {"id": "1"})).is_invalidated


class TestCreateApiQueries:
    def test_from_settings(self, tmp_path):
        settings = Settings(
            _env_file=None,
            client_name="configured",
            api_base_url="https://api.example.test",
            cache_backend="sqlite",
            cache_root=tmp_path,
        )
        api = create_api_queries(settings=settings)
        assert api.name == "configured"
        assert isinstance(api.transport, HttpxTransport)
        assert type(api.store).__name__ == "SqliteCacheStore"
        api.store.close()

    def test_explicit_collaborators(self, fake_transport, store):
        api = create_api_queries(
            name="explicit", transport=fake_transport, store=store, settings=Settings(_env_file=None)
        )
        assert api.name == "explicit"
        assert api.transport is fake_transport
        assert api.store is store

    def test_configure_logging(self, fake_transport, store):
        settings = Settings(_env_file=None, log_level="DEBUG", log_format="text")
        create_api_queries(
            transport=fake_transport, store=store, settings=settings, configure_logging=True
        )
        assert logging.getLogger("querycache").level == logging.DEBUG
