# src/combine/combination.py - v1
"""Merge the states of several independent queries into one.

Precedence is error > pending > success: one failed query makes the whole
combination failed, otherwise one pending query keeps it pending, and only
when every query succeeded is ``data`` the ordered list of their values.
The underlying errors stay on the individual handles.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

CombinedStatus = Literal["pending", "error", "success"]

# Keeps scheduled refetch tasks alive until they finish.
_background_tasks: set[asyncio.Task[Any]] = set()


@runtime_checkable
class QueryHandle(Protocol):
    """What the combinator reads from a query."""

    @property
    def status(self) -> str: ...

    @property
    def data(self) -> Any: ...

    @property
    def is_fetching(self) -> bool: ...

    @property
    def is_refetching(self) -> bool: ...

    def refetch(self) -> Any: ...


@dataclass(frozen=True)
class CombinedQueriesResult:
    """Aggregate view over a fixed list of query handles."""

    status: CombinedStatus
    data: list[Any] | None
    queries: tuple[QueryHandle, ...]
    is_fetching: bool
    is_refetching: bool

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    def refetch_all(self) -> None:
        """Start a refetch of every query. Returns immediately.

        Completion is observed through the individual queries; no ordering
        between them is implied.
        """
        for query in self.queries:
            try:
                result = query.refetch()
            except RuntimeError as e:
                logger.warning("Refetch of %r not started: %s", query, e)
                continue
            _fire_and_forget(result)


def _fire_and_forget(result: Any) -> None:
    if not inspect.isawaitable(result):
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(result):
            result.close()
        logger.warning("refetch_all called without a running event loop, refetch dropped")
        return
    task = asyncio.ensure_future(result, loop=loop)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def combine(queries: Sequence[QueryHandle]) -> CombinedQueriesResult:
    """Combine query states with error > pending > success precedence."""
    handles = tuple(queries)
    statuses = [query.status for query in handles]

    status: CombinedStatus
    data: list[Any] | None
    if "error" in statuses:
        status, data = "error", None
    elif "pending" in statuses:
        status, data = "pending", None
    else:
        status, data = "success", [query.data for query in handles]

    return CombinedQueriesResult(
        status=status,
        data=data,
        queries=handles,
        is_fetching=any(query.is_fetching for query in handles),
        is_refetching=any(query.is_refetching for query in handles),
    )


def combine_resolved(queries: Sequence[QueryHandle]) -> CombinedQueriesResult:
    """Combine queries already known to hold data; always reports success."""
    handles = tuple(queries)
    return CombinedQueriesResult(
        status="success",
        data=[query.data for query in handles],
        queries=handles,
        is_fetching=any(query.is_fetching for query in handles),
        is_refetching=any(query.is_refetching for query in handles),
    )
