# src/cache/fingerprint.py - v1
"""Fingerprint construction and recognition.

A store shared with other code may hold keys this package never created, so
every consumer recognises its own keys with ``is_fingerprint`` or
``coerce_fingerprint`` before reading their fields.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from querycache.cache.models import FINGERPRINT_FIELDS, Fingerprint

logger = logging.getLogger(__name__)


def make_fingerprint(
    scope: str,
    route: str,
    payload: Any,
    paginated: bool = False,
) -> Fingerprint:
    """Build the identity of one request.

    Args:
        scope: Namespace of the client that owns the request.
        route: Operation identifier, e.g. ``"GET /items/:id"``.
        payload: Path params plus query/body values. Deep-copied.
        paginated: True for cursor-paginated page sequences.
    """
    return Fingerprint(scope=scope, route=route, payload=payload, paginated=paginated)


def is_fingerprint(value: object) -> bool:
    """True iff ``value`` is a Fingerprint whose four fields are well typed."""
    if not isinstance(value, Fingerprint):
        return False
    return (
        isinstance(value.scope, str)
        and isinstance(value.route, str)
        and isinstance(value.paginated, bool)
        and "payload" in value.__dict__
    )


def coerce_fingerprint(value: object) -> Fingerprint | None:
    """Return ``value`` as a Fingerprint, or None if it is not one of ours.

    Accepts Fingerprint instances and the mapping form produced by
    ``Fingerprint.as_key()`` (as read back from persistent stores).
    """
    if isinstance(value, Fingerprint):
        return value if is_fingerprint(value) else None
    if not isinstance(value, Mapping) or set(value.keys()) != FINGERPRINT_FIELDS:
        return None
    if not (
        isinstance(value["scope"], str)
        and isinstance(value["route"], str)
        and isinstance(value["paginated"], bool)
    ):
        return None
    try:
        return Fingerprint(
            scope=value["scope"],
            route=value["route"],
            payload=value["payload"],
            paginated=value["paginated"],
        )
    except ValidationError:
        logger.debug("Skipping malformed fingerprint mapping: %r", value)
        return None


def fingerprint_digest(fingerprint: Fingerprint) -> str:
    """Canonical SHA-256 digest used as primary key by persistent stores."""
    return fingerprint.digest
