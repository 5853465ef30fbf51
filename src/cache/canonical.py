# src/cache/canonical.py - v1
"""Canonical form of payload values for hashing and persistence.

Values that compare equal in Python must canonicalise identically, so numeric
variants collapse (True -> 1, 2.0 -> 2, Decimal("2") -> 2) and unordered
collections are sorted.

``json_normal`` is applied to fingerprint payloads when they are built: it
turns tuples into lists, mapping keys into strings and exact numbers into
int/float. Two payloads then compare equal exactly when their canonical JSON
is the same, so equality, hash and persisted digest agree.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from decimal import Decimal
from fractions import Fraction
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python


def _plain_number(value: Decimal | Fraction) -> int | float:
    if isinstance(value, Decimal) and not value.is_finite():
        return float(value)
    integral = int(value)
    return integral if integral == value else float(value)


def canonicalize(value: Any) -> Any:
    """Convert a payload into a JSON-ready structure with a stable layout."""
    if isinstance(value, BaseModel):
        return canonicalize(value.model_dump(mode="python"))
    if isinstance(value, Mapping):
        return {_key_text(k): canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    if isinstance(value, (set, frozenset)):
        items = [canonicalize(v) for v in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str))
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (Decimal, Fraction)):
        value = _plain_number(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def canonical_json(value: Any) -> str:
    """Deterministic compact JSON encoding of ``canonicalize(value)``."""
    return json.dumps(
        canonicalize(value), sort_keys=True, separators=(",", ":"), default=str
    )


def sha256_digest(value: Any) -> str:
    """SHA-256 hex digest of the canonical JSON encoding."""
    return hashlib.sha256(canonical_json(value).encode("utf-8")).hexdigest()


def _key_text(key: Any) -> str:
    # 1, 1.0 and True are the same dict key, so they share one text form.
    return key if isinstance(key, str) else canonical_json(key)


def json_normal(value: Any) -> Any:
    """Fresh JSON-native copy of ``value``.

    Raises:
        ValueError: ``value`` holds something with no JSON form.
    """
    if isinstance(value, BaseModel):
        return json_normal(value.model_dump(mode="python"))
    if isinstance(value, Mapping):
        return {_key_text(k): json_normal(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_normal(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((json_normal(v) for v in value), key=canonical_json)
    if isinstance(value, (Decimal, Fraction)):
        return _plain_number(value)
    if value is None or isinstance(value, (str, int, float)):
        return value
    return to_jsonable_python(value)
