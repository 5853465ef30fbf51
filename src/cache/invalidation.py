# src/cache/invalidation.py - v1
"""Invalidation matching: decide which cached requests a declarative spec hits.

An invalidation spec maps a route to one predicate variant:

    MatchAll()                     every entry of the route
    MatchPayloads([{"id": "1"}])   entries whose payload deep-equals a candidate
    MatchWhere(lambda p: ...)      entries for which the function is truthy

The shorthands ``"all"``, a list/tuple of payloads and a plain callable are
accepted wherever a spec is taken and normalised to these variants.

Matching is evaluated per (scope, paginated) partition: a spec applied to
single-value entries never touches page sequences of the same route.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from querycache.cache.canonical import json_normal
from querycache.cache.fingerprint import coerce_fingerprint
from querycache.cache.models import Fingerprint


@dataclass(frozen=True)
class MatchAll:
    """Match every entry for the route."""

    def matches(self, payload: Any) -> bool:
        return True


@dataclass(frozen=True)
class MatchPayloads:
    """Match entries whose payload is structurally equal to any candidate.

    Candidates are compared in the JSON form fingerprints store their payload in.
    """

    payloads: tuple[Any, ...]

    def matches(self, payload: Any) -> bool:
        return any(json_normal(candidate) == payload for candidate in self.payloads)


@dataclass(frozen=True)
class MatchWhere:
    """Match entries for which ``fn(payload)`` is truthy."""

    fn: Callable[[Any], bool]

    def matches(self, payload: Any) -> bool:
        return bool(self.fn(payload))


InvalidationPredicate = Union[MatchAll, MatchPayloads, MatchWhere]
RawPredicate = Union[InvalidationPredicate, str, list, tuple, Callable[[Any], bool]]
InvalidationSpec = Mapping[str, RawPredicate]


def normalize_predicate(raw: RawPredicate) -> InvalidationPredicate:
    """Convert a predicate shorthand into its tagged variant.

    Raises:
        TypeError: If ``raw`` is none of the supported forms.
    """
    if isinstance(raw, (MatchAll, MatchPayloads, MatchWhere)):
        return raw
    if isinstance(raw, str) and raw == "all":
        return MatchAll()
    if isinstance(raw, (list, tuple)):
        return MatchPayloads(tuple(raw))
    if callable(raw):
        return MatchWhere(raw)
    raise TypeError(
        f"Unsupported invalidation predicate {raw!r}: "
        "expected 'all', a list of payloads or a callable"
    )


def normalize_spec(spec: InvalidationSpec) -> dict[str, InvalidationPredicate]:
    """Normalise every predicate of ``spec``."""
    return {route: normalize_predicate(raw) for route, raw in spec.items()}


def match_invalidation(
    spec: InvalidationSpec,
    scope: str,
    paginated: bool,
) -> Callable[[object], bool]:
    """Build a predicate over raw store keys for one (scope, paginated) partition.

    The returned function is pure: it never raises for foreign keys and can be
    applied to any number of keys, repeatedly.
    """
    predicates = normalize_spec(spec)

    def predicate(key: object) -> bool:
        fingerprint = coerce_fingerprint(key)
        if fingerprint is None:
            return False
        if fingerprint.scope != scope or fingerprint.paginated != paginated:
            return False

        rule = predicates.get(fingerprint.route)
        if rule is None:
            return False

        if isinstance(rule, MatchAll):
            return True
        if isinstance(rule, MatchWhere):
            return rule.matches(fingerprint.payload)
        if isinstance(rule, MatchPayloads):
            return rule.matches(fingerprint.payload)
        raise AssertionError(f"unhandled predicate variant {rule!r}")

    return predicate


def select_matching(
    spec: InvalidationSpec,
    keys: Iterable[object],
    scope: str,
    paginated: bool,
) -> list[Fingerprint]:
    """Return the fingerprints among ``keys`` that ``spec`` matches, in order."""
    predicate = match_invalidation(spec, scope, paginated)
    matched: list[Fingerprint] = []
    for key in keys:
        if predicate(key):
            fingerprint = coerce_fingerprint(key)
            if fingerprint is not None:
                matched.append(fingerprint)
    return matched
