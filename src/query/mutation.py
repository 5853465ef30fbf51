# src/query/mutation.py - v1
"""Mutation handle: issues a write route and tracks its last outcome.

Mutations never read or write the cache themselves; use ``on_success`` to
invalidate or update related entries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from querycache.logging.context import set_request_context
from querycache.transport.base_transport import BaseTransport

logger = logging.getLogger(__name__)

MutationStatus = Literal["idle", "pending", "error", "success"]


class Mutation:
    """Issues ``route`` through ``transport`` on each ``mutate`` call."""

    def __init__(
        self,
        route: str,
        transport: BaseTransport,
        *,
        scope: str = "",
        on_success: Callable[[Any, Any], Any] | None = None,
    ) -> None:
        self._route = route
        self._transport = transport
        self._scope = scope
        self._on_success = on_success
        self.status: MutationStatus = "idle"
        self.data: Any = None
        self.error: BaseException | None = None

    @property
    def route(self) -> str:
        return self._route

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    async def mutate(self, payload: Any) -> Any:
        """Issue the route with ``payload`` and return the response data.

        Raises:
            TransportError: If the remote rejected the request.
        """
        set_request_context(self._scope, self._route)
        self.status = "pending"
        self.error = None
        try:
            response = await self._transport.issue(self._route, payload)
        except Exception as exc:
            self.status = "error"
            self.error = exc
            logger.warning("Mutation %s failed: %s", self._route, exc)
            raise

        self.status = "success"
        self.data = response.data
        if self._on_success is not None:
            self._on_success(response.data, payload)
        return response.data

    def reset(self) -> None:
        """Forget the last outcome."""
        self.status = "idle"
        self.data = None
        self.error = None
