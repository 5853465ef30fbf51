# tests/unit/api/test_unit_models.py - v1
"""Tests for api/models.py."""

from __future__ import annotations

import pytest

from querycache.api.models import QueryOptions, RouteRequest


class TestQueryOptions:
    def test_defaults(self):
        options = QueryOptions()
        assert options.enabled is True
        assert options.observe is True


class TestRouteRequestCoerce:
    def test_pair(self):
        request = RouteRequest.coerce(("GET /items/:id", {"id": "1"}))
        assert request.route == "GET /items/:id"
        assert request.payload == {"id": "1"}
        assert request.options == QueryOptions()

    def test_triple_with_dict_options(self):
        request = RouteRequest.coerce(("GET /items", None, {"enabled": False}))
        assert request.options.enabled is False
        assert request.options.observe is True

    def test_triple_with_none_options(self):
        assert RouteRequest.coerce(("GET /items", None, None)).options == QueryOptions()

    def test_instance_passthrough(self):
        request = RouteRequest(route="GET /items")
        assert RouteRequest.coerce(request) is request

    @pytest.mark.parametrize("value", [("GET /items",), ("a", "b", "c", "d"), "GET /items", None])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="Expected"):
            RouteRequest.coerce(value)
