# src/cache/models.py - v1
"""Cache domain models: Fingerprint, PageSequence, CacheEntry, StoreEvent."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from querycache.cache.canonical import json_normal, sha256_digest

QueryStatus = Literal["pending", "error", "success"]
FetchStatus = Literal["idle", "fetching"]
StoreEventKind = Literal["updated", "invalidated", "reset"]

FINGERPRINT_FIELDS = frozenset({"scope", "route", "payload", "paginated"})


class Fingerprint(BaseModel):
    """Structured identity of one logical request.

    Two fingerprints are equal when scope, route and paginated match and the
    payloads are deeply equal. The payload is kept in JSON form (tuples become
    lists, mapping keys strings, Decimal an int or float), so equality is
    decided on the same value the digest hashes. The hash is derived from the
    canonical digest, so equal fingerprints can key the same dict slot.
    """

    model_config = ConfigDict(frozen=True)

    scope: str
    route: str
    payload: Any = None
    paginated: bool = False

    @field_validator("payload")
    @classmethod
    def _detach_payload(cls, v: Any) -> Any:
        # Fresh copy: later mutation of the caller's object must not leak into the key.
        return json_normal(v)

    @property
    def digest(self) -> str:
        """SHA-256 hex digest of the canonical fingerprint."""
        return sha256_digest(self.as_key())

    def as_key(self) -> dict[str, Any]:
        """Mapping form persisted by stores and accepted by coerce_fingerprint."""
        return {
            "scope": self.scope,
            "route": self.route,
            "payload": self.payload,
            "paginated": self.paginated,
        }

    def __hash__(self) -> int:
        return hash(self.digest)


class PageSequence(BaseModel):
    """Cached value of a paginated request: pages plus the params that fetched them."""

    pages: list[Any] = Field(default_factory=list)
    page_params: list[Any] = Field(default_factory=list)


class CacheEntry(BaseModel):
    """Single cache entry: a key and the lifecycle state of its result.

    ``key`` is usually a Fingerprint, but a shared store may hold entries
    keyed by anything hashable.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: Any
    data: Any = None
    status: QueryStatus = "pending"
    fetch_status: FetchStatus = "idle"
    error: Any = Field(default=None, exclude=True)
    error_message: str | None = None
    is_invalidated: bool = False
    data_updated_at: datetime | None = None
    fetch_count: int = 0

    @property
    def fingerprint(self) -> Fingerprint | None:
        """The key as a Fingerprint, or None when the entry is foreign."""
        from querycache.cache.fingerprint import coerce_fingerprint

        return coerce_fingerprint(self.key)

    @property
    def has_data(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class StoreEvent:
    """Change notification emitted by a cache store after a mutation."""

    kind: StoreEventKind
    key: Any


class CachedPayload(BaseModel):
    """One (payload, data) pair returned by bulk cache reads."""

    model_config = ConfigDict(frozen=True)

    payload: Any
    data: Any = None
