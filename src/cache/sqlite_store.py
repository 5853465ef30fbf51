# src/cache/sqlite_store.py - v1
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. Entries survive process restarts;
cached data must be JSON-serialisable. Fingerprint keys are persisted in their
mapping form and recognised again on read, anything else is stored as an
opaque JSON key.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from querycache.cache.base_cache_store import BaseCacheStore
from querycache.cache.canonical import sha256_digest
from querycache.cache.fingerprint import coerce_fingerprint
from querycache.cache.models import CacheEntry, Fingerprint, PageSequence

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    key_json TEXT NOT NULL,
    scope TEXT,
    route TEXT,
    data TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_scope_route ON cache_entries(scope, route);
"""

_OPAQUE_PREFIX = "opaque:"


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store shared across processes."""

    def __init__(self, db_path: Path | str) -> None:
        super().__init__()
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def get_entry(self, key: Any) -> CacheEntry | None:
        key = self._normalize_key(key)
        with self._lock:
            row = self._conn.execute(
                "SELECT key_json, data FROM cache_entries WHERE key = ?",
                (_row_key(key),),
            ).fetchone()
        if row is None:
            return None
        return _decode_row(row[0], row[1])

    def set_entry(self, key: Any, entry: CacheEntry) -> None:
        key = self._normalize_key(key)
        scope = key.scope if isinstance(key, Fingerprint) else None
        route = key.route if isinstance(key, Fingerprint) else None
        key_json = json.dumps(
            key.as_key() if isinstance(key, Fingerprint) else key, default=str
        )
        with self._lock:
            self._conn.execute(
                """INSERT OR REPLACE INTO cache_entries
                   (key, key_json, scope, route, data, updated_at)
                   VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)""",
                (
                    _row_key(key),
                    key_json,
                    scope,
                    route,
                    entry.model_dump_json(exclude={"key", "error"}),
                ),
            )
            self._conn.commit()
        self._notify("updated", [key])

    def query_entries(self, predicate: Callable[[Any], bool]) -> list[CacheEntry]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT key_json, data FROM cache_entries"
            ).fetchall()
        entries: list[CacheEntry] = []
        for key_json, data in rows:
            entry = _decode_row(key_json, data)
            if entry is not None and predicate(entry.key):
                entries.append(entry)
        return entries

    def invalidate(self, keys: Iterable[Any]) -> int:
        touched: list[Any] = []
        with self._lock:
            for key in map(self._normalize_key, keys):
                entry = self.get_entry(key)
                if entry is None:
                    continue
                self._conn.execute(
                    "UPDATE cache_entries SET data = ?, updated_at = CURRENT_TIMESTAMP "
                    "WHERE key = ?",
                    (
                        entry.model_copy(update={"is_invalidated": True}).model_dump_json(
                            exclude={"key", "error"}
                        ),
                        _row_key(key),
                    ),
                )
                touched.append(key)
            self._conn.commit()
        logger.debug("Invalidated %d entries", len(touched))
        self._notify("invalidated", touched)
        return len(touched)

    def reset(self, keys: Iterable[Any]) -> int:
        removed: list[Any] = []
        with self._lock:
            for key in map(self._normalize_key, keys):
                cursor = self._conn.execute(
                    "DELETE FROM cache_entries WHERE key = ?", (_row_key(key),)
                )
                if cursor.rowcount:
                    removed.append(key)
            self._conn.commit()
        logger.debug("Reset %d entries", len(removed))
        self._notify("reset", removed)
        return len(removed)

    def keys(self) -> list[Any]:
        with self._lock:
            rows = self._conn.execute("SELECT key_json FROM cache_entries").fetchall()
        keys: list[Any] = []
        for (key_json,) in rows:
            try:
                keys.append(_decode_key(key_json))
            except (json.JSONDecodeError, TypeError) as e:
                logger.debug("Skipping undecodable cache key %r: %s", key_json, e)
        return keys

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()


def _row_key(key: Any) -> str:
    if isinstance(key, Fingerprint):
        return key.digest
    return _OPAQUE_PREFIX + sha256_digest(key)


def _decode_key(key_json: str) -> Any:
    raw = json.loads(key_json)
    fingerprint = coerce_fingerprint(raw)
    if fingerprint is not None:
        return fingerprint
    return _freeze(raw)


def _freeze(value: Any) -> Any:
    """Make a decoded JSON key hashable again."""
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    return value


def _decode_row(key_json: str, data: str) -> CacheEntry | None:
    try:
        key = _decode_key(key_json)
        payload = json.loads(data)
        if not isinstance(payload, dict):
            logger.debug(
                "Cache row %s holds %s, expected an object", key_json, type(payload).__name__
            )
            return None
        if isinstance(key, Fingerprint) and key.paginated and isinstance(payload.get("data"), dict):
            payload["data"] = PageSequence.model_validate(payload["data"])
        return CacheEntry.model_validate({**payload, "key": key})
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        logger.debug("Failed to decode cache row %s: %s", key_json, e)
        return None
