# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides an in-memory store, a recording fake transport and sample
fingerprints. No network access: HTTP is served by httpx.MockTransport.
"""

from __future__ import annotations

from typing import Any

import pytest

from querycache.cache.fingerprint import make_fingerprint
from querycache.cache.memory_store import InMemoryCacheStore
from querycache.cache.models import Fingerprint
from querycache.transport.base_transport import BaseTransport
from querycache.transport.errors import TransportError
from querycache.transport.models import TransportResponse

SCOPE = "items-api"
ITEM_ROUTE = "GET /items/:id"
LIST_ROUTE = "GET /items"


class FakeTransport(BaseTransport):
    """Answers routes from a table and records every call.

    Values in ``responses`` may be plain data, an exception instance to
    raise, or a callable taking the payload.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, Any]] = []

    async def issue(self, route: str, payload: Any) -> TransportResponse:
        self.calls.append((route, payload))
        if route not in self.responses:
            raise TransportError(route, 404, {"message": "no fake response"})
        answer = self.responses[route]
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            answer = answer(payload)
        return TransportResponse(status_code=200, data=answer)

    def calls_for(self, route: str) -> list[Any]:
        return [payload for called, payload in self.calls if called == route]


# === FIXTURES: Stores and transports ===


@pytest.fixture
def store() -> InMemoryCacheStore:
    """Fresh in-memory store per test."""
    return InMemoryCacheStore()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport(
        {
            ITEM_ROUTE: lambda payload: {"id": payload["id"], "name": f"item {payload['id']}"},
            LIST_ROUTE: [{"id": "1"}, {"id": "2"}],
        }
    )


# === FIXTURES: Sample keys ===


@pytest.fixture
def scope() -> str:
    return SCOPE


@pytest.fixture
def item_fp() -> Fingerprint:
    """Fingerprint of GET /items/:id for item 1."""
    return make_fingerprint(SCOPE, ITEM_ROUTE, {"id": "1"})


@pytest.fixture
def seeded_store(store: InMemoryCacheStore) -> InMemoryCacheStore:
    """Store holding two items, one page sequence, a foreign scope and a foreign key."""
    from querycache.cache.models import CacheEntry, PageSequence

    def put(fp: Fingerprint, data: Any) -> None:
        store.set_entry(fp, CacheEntry(key=fp, data=data, status="success"))

    put(make_fingerprint(SCOPE, ITEM_ROUTE, {"id": "1"}), {"id": "1", "name": "one"})
    put(make_fingerprint(SCOPE, ITEM_ROUTE, {"id": "2"}), {"id": "2", "name": "two"})
    put(
        make_fingerprint(SCOPE, ITEM_ROUTE, {"id": "1"}, paginated=True),
        PageSequence(pages=[{"id": "1"}], page_params=[None]),
    )
    put(make_fingerprint("other-api", ITEM_ROUTE, {"id": "1"}), {"id": "1", "name": "foreign"})
    store.set_entry(("legacy", "key"), CacheEntry(key=("legacy", "key"), data="opaque"))
    return store


@pytest.fixture
def make_transport():
    """Factory for FakeTransport instances with custom responses."""
    return FakeTransport
