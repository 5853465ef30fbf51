# src/cache/cache_factory.py - v1
"""Factory for cache store instantiation."""

from __future__ import annotations

from querycache.cache.base_cache_store import BaseCacheStore
from querycache.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from querycache.cache.memory_store import InMemoryCacheStore
        return InMemoryCacheStore()

    if backend == "sqlite":
        from querycache.cache.sqlite_store import SqliteCacheStore
        cache_root = settings.cache_root.expanduser()  # type: ignore[union-attr]
        return SqliteCacheStore(db_path=cache_root / "querycache.db")

    raise ValueError(f"Unsupported cache backend: {backend!r}")
