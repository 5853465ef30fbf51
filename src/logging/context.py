# src/logging/context.py - v1
"""Contextual logging support: attach scope, route and cache key to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set around each fetch.
_scope: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scope", default=None
)
_route: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "route", default=None
)
_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "key", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    scope: str | None = None
    route: str | None = None
    key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(scope=_scope.get(), route=_route.get(), key=_key.get())


def set_request_context(scope: str, route: str, key: str | None = None) -> None:
    """Set request-level context (called once per fetch or mutation).

    ``key`` is a short form of the fingerprint digest.
    """
    _scope.set(scope)
    _route.set(route)
    _key.set(key)


def clear_context() -> None:
    """Reset all context variables."""
    _scope.set(None)
    _route.set(None)
    _key.set(None)
