# tests/unit/cache/test_unit_canonical.py - v1
"""Tests for cache/canonical.py."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

import pytest
from pydantic import BaseModel

from querycache.cache.canonical import canonical_json, canonicalize, json_normal, sha256_digest


class _Filter(BaseModel):
    status: str
    limit: int = 10


class _Color(Enum):
    RED = "red"


class TestCanonicalize:
    def test_key_order_ignored(self):
        assert canonical_json({"b": 1, "a": 2}) == canonical_json({"a": 2, "b": 1})

    def test_tuple_and_list_collapse(self):
        assert canonicalize((1, 2)) == [1, 2]

    def test_sets_sorted(self):
        assert canonicalize({"b", "a", "c"}) == ["a", "b", "c"]

    def test_bool_and_integral_float(self):
        assert canonicalize(True) == 1
        assert canonicalize(2.0) == 2
        assert canonicalize(2.5) == 2.5

    def test_pydantic_model_dumped(self):
        assert canonicalize(_Filter(status="open")) == {"status": "open", "limit": 10}

    def test_exact_numbers_collapse(self):
        assert canonicalize(Decimal("3")) == 3
        assert canonicalize(Decimal("2.5")) == 2.5
        assert canonical_json({"n": Decimal("1")}) == canonical_json({"n": 1})

    def test_non_string_mapping_keys(self):
        assert canonicalize({1: "a"}) == {"1": "a"}
        assert canonicalize({True: "a"}) == {"1": "a"}

    def test_compact_encoding(self):
        assert canonical_json({"a": [1, 2]}) == '{"a":[1,2]}'


class TestDigest:
    def test_stable(self):
        assert sha256_digest({"a": 1}) == sha256_digest({"a": 1})

    def test_differs_by_value(self):
        assert sha256_digest({"a": 1}) != sha256_digest({"a": 2})


class TestJsonNormal:
    def test_containers(self):
        assert json_normal({"ids": (1, 2), "tags": {"b", "a"}}) == {"ids": [1, 2], "tags": ["a", "b"]}

    def test_keys_become_text(self):
        assert json_normal({1: "a", None: "b"}) == {"1": "a", "null": "b"}

    def test_exact_numbers(self):
        assert json_normal(Decimal("4.0")) == 4
        assert isinstance(json_normal(Decimal("4.0")), int)
        assert json_normal(Decimal("0.25")) == 0.25

    def test_scalars_unchanged(self):
        assert json_normal(True) is True
        assert json_normal(2.0) == 2.0
        assert json_normal(None) is None

    def test_models_and_enums(self):
        assert json_normal(_Filter(status="open")) == {"status": "open", "limit": 10}
        assert json_normal(_Color.RED) == "red"

    def test_returns_fresh_copy(self):
        source = {"tags": ["a"]}
        result = json_normal(source)
        result["tags"].append("b")
        assert source == {"tags": ["a"]}

    def test_unknown_object_rejected(self):
        with pytest.raises(ValueError):
            json_normal(object())
