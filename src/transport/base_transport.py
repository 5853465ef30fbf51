# src/transport/base_transport.py - v1
"""Abstract transport interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from querycache.transport.models import TransportResponse


class BaseTransport(ABC):
    """Performs the network call behind a route and payload."""

    @abstractmethod
    async def issue(self, route: str, payload: Any) -> TransportResponse:
        """Issue ``route`` with ``payload`` and return the response.

        Raises:
            TransportError: If the remote answered with an error status.
        """

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
