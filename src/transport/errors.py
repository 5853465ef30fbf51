# src/transport/errors.py - v1
"""Transport errors."""

from __future__ import annotations

from typing import Any


class TransportError(Exception):
    """The remote answered a request with an error status."""

    def __init__(self, route: str, status_code: int, data: Any = None):
        self.route = route
        self.status_code = status_code
        self.data = data
        super().__init__(f"{route} failed with status {status_code}")


class TransportRetryExhausted(Exception):
    """All retries exhausted for a request."""

    def __init__(self, route: str, error_type: str, attempts: int, last_error: Exception):
        self.route = route
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Request '{route}' failed after {attempts} attempts ({error_type}): {last_error}"
        )
