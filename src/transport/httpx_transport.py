# src/transport/httpx_transport.py - v1
"""HTTP transport on top of httpx.AsyncClient.

GET and DELETE send the payload (minus path params) as query parameters,
every other method sends it as a JSON body.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from querycache.config.settings import Settings
from querycache.transport.base_transport import BaseTransport
from querycache.transport.errors import TransportError
from querycache.transport.models import TransportResponse
from querycache.transport.retry import RetryConfig, with_retry
from querycache.transport.routes import remove_path_params, split_route, substitute_path_params
from querycache.version import __version__

logger = logging.getLogger(__name__)

_QUERY_METHODS = ("GET", "DELETE")


class HttpxTransport(BaseTransport):
    """Issues routes against a base URL with an httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str = "",
        *,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 30.0,
        headers: Mapping[str, str] | None = None,
        retry_enabled: bool = True,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_s,
            headers={"User-Agent": f"querycache/{__version__}", **(headers or {})},
        )
        self._retry_enabled = retry_enabled
        self._retry_configs = retry_configs

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpxTransport:
        return cls(
            settings.api_base_url,
            timeout_s=settings.api_timeout_s,
            headers=settings.api_default_headers_dict,
            retry_enabled=settings.retry_enabled,
        )

    async def issue(self, route: str, payload: Any) -> TransportResponse:
        method, path = split_route(route)
        url = substitute_path_params(path, payload)
        body = remove_path_params(path, payload)

        kwargs: dict[str, Any] = {}
        if method in _QUERY_METHODS:
            if isinstance(body, Mapping) and body:
                kwargs["params"] = dict(body)
        elif body is not None:
            kwargs["json"] = body

        if not self._retry_enabled:
            return await self._send(route, method, url, **kwargs)
        return await with_retry(
            self._send, route, method, url,
            route=route, retry_configs=self._retry_configs, **kwargs,
        )

    async def _send(self, route: str, method: str, url: str, **kwargs: Any) -> TransportResponse:
        start = time.monotonic()
        response = await self._client.request(method, url, **kwargs)
        latency_ms = int((time.monotonic() - start) * 1000)
        data = _decode_body(response)

        logger.debug("%s %s -> %d (%dms)", method, url, response.status_code, latency_ms)
        if response.status_code >= 400:
            raise TransportError(route, response.status_code, data)

        return TransportResponse(
            status_code=response.status_code,
            data=data,
            headers=dict(response.headers),
            latency_ms=latency_ms,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    if "json" in response.headers.get("content-type", ""):
        return response.json()
    return response.text
