# src/transport/routes.py - v1
"""Route template handling.

A route is ``"METHOD /path/:param"``. Segments starting with ``:`` are path
parameters taken from the request payload:

    >>> substitute_path_params("/items/:id", {"id": "a b"})
    '/items/a%20b'
    >>> remove_path_params("/items/:id", {"id": "1", "filter": "x"})
    {'filter': 'x'}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote


def split_route(route: str) -> tuple[str, str]:
    """Split ``"GET /items"`` into ``("GET", "/items")``.

    Raises:
        ValueError: If the route has no method or no path.
    """
    method, _, path = route.strip().partition(" ")
    if not method or not path.strip():
        raise ValueError(f"Invalid route {route!r}: expected 'METHOD /path'")
    return method.upper(), path.strip()


def path_params_of(path: str) -> list[str]:
    """Names of the ``:param`` segments of ``path``, in order."""
    return [segment[1:] for segment in path.split("/") if segment.startswith(":") and len(segment) > 1]


def substitute_path_params(path: str, params: Any) -> str:
    """Replace each ``:param`` segment with the URL-encoded payload value."""
    if not isinstance(params, Mapping):
        return path
    segments = []
    for segment in path.split("/"):
        name = segment[1:]
        if segment.startswith(":") and name in params:
            segment = quote(str(params[name]), safe="!*'()")
        segments.append(segment)
    return "/".join(segments)


def remove_path_params(path: str, payload: Any) -> Any:
    """Drop path-param keys (and None values) from the payload.

    Non-mapping payloads, such as lists sent as a JSON body, are returned as-is.
    """
    if not isinstance(payload, Mapping):
        return payload
    names = set(path_params_of(path))
    return {
        name: value
        for name, value in payload.items()
        if value is not None and name not in names
    }
