"""HTTP transport used by the client to reach the exchange."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Mapping[str, Any],
        timeout: float,
    ) -> str:
        """Send the request and return the raw response text."""
        ...


class HttpxTransport:
    """Async httpx transport. Form-encodes the body; every non-2xx is a failure.

    Pass `client` to share a connection pool. Otherwise one AsyncClient is
    created on first use and reused until `aclose()`. An injected client is
    never closed here.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Mapping[str, Any],
        timeout: float,
    ) -> str:
        return await self._send(self._get_client(), method, url, headers, body, timeout)

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Mapping[str, Any],
        timeout: float,
    ) -> str:
        data = {k: v for k, v in body.items() if v is not None} or None
        try:
            r = await client.request(method, url, headers=dict(headers), data=data, timeout=timeout)
            r.raise_for_status()
        except httpx.TimeoutException as exc:
            raise TransportError(f"Timeout after {timeout}s: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.debug("binance_http_status status=%s url=%s", status, exc.request.url.path)
            raise TransportError(
                f"HTTP error {status}",
                status_code=status,
                body=exc.response.text,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Connection error: {exc}") from exc
        return r.text
