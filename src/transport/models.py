# src/transport/models.py - v1
"""Transport-level types: TransportResponse."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TransportResponse(BaseModel):
    """Normalized response from any transport."""

    status_code: int
    data: Any = None
    headers: dict[str, str] = Field(default_factory=dict)
    latency_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status_code < 400
