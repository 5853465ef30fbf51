# src/api/models.py - v1
"""API-level models: QueryOptions, RouteRequest."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class QueryOptions(BaseModel):
    """Per-query behaviour of the facade."""

    # Start a fetch when the cached entry is missing or stale.
    enabled: bool = True
    # Refetch when the entry is invalidated or reset.
    observe: bool = True


class RouteRequest(BaseModel):
    """One (route, payload, options) triple for combined queries."""

    route: str
    payload: Any = None
    options: QueryOptions = Field(default_factory=QueryOptions)

    @classmethod
    def coerce(cls, value: RouteRequest | tuple[Any, ...]) -> RouteRequest:
        """Accept ``(route, payload)`` and ``(route, payload, options)`` tuples."""
        if isinstance(value, RouteRequest):
            return value
        if not isinstance(value, tuple) or len(value) not in (2, 3):
            raise ValueError(f"Expected (route, payload[, options]), got {value!r}")
        options = value[2] if len(value) == 3 and value[2] is not None else QueryOptions()
        if isinstance(options, dict):
            options = QueryOptions(**options)
        return cls(route=value[0], payload=value[1], options=options)
