"""Binance REST client: routes named API methods to public or signed requests."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Set

from .config import DEFAULT_CLIENT_CONFIG, ClientConfig
from .errors import InvalidMethodError, RemoteApiError
from .methods import MethodKind, classify
from .response import decode_body, normalize_response
from .signing import PreparedRequest, RequestAuthenticator
from .transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)

_REDACT_KEYS = {"signature", "otp", "timestamp"}

Callback = Callable[[Optional[BaseException], Any], None]


def redact_params(params: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: ("***" if k in _REDACT_KEYS else v) for k, v in params.items()}


class BinanceClient:
    """Async client for the Binance REST API.

    Every call makes exactly one HTTP attempt. Errors are raised as
    subclasses of BinanceApiError.
    """

    def __init__(
        self,
        config: ClientConfig = DEFAULT_CLIENT_CONFIG,
        *,
        transport: Optional[Transport] = None,
        nonce_source: Optional[Callable[[], int]] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._config = config
        self._owns_transport = transport is None
        self._transport = transport or HttpxTransport()
        self._callback_tasks: Set["asyncio.Task[Any]"] = set()
        self._authenticator = RequestAuthenticator(config, nonce_source=nonce_source, clock=clock)

    @classmethod
    def create(cls, api_key: str, api_secret: str, **options: Any) -> "BinanceClient":
        """Build a client from credentials plus any other ClientConfig fields."""
        return cls(ClientConfig(api_key=api_key, api_secret=api_secret, **options))

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def aclose(self) -> None:
        """Close the HTTP transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> "BinanceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def api(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Call a public or private API method.

        Raises InvalidMethodError before any I/O when `method` is unknown.
        """
        if classify(method) is MethodKind.PUBLIC:
            return await self.public_method(method, params)
        return await self.private_method(method, params)

    async def public_method(self, method: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        if classify(method) is not MethodKind.PUBLIC:
            raise InvalidMethodError(method)
        request = PreparedRequest(
            url=self._config.url + self._config.public_path + method,
            params=dict(params or {}),
        )
        return await self._send(method, request)

    async def private_method(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        signed: Optional[bool] = None,
    ) -> Any:
        """Call a private method.

        `signed` overrides the per-method default from ClientConfig.signed_methods.
        """
        if classify(method) is not MethodKind.PRIVATE:
            raise InvalidMethodError(method)
        request = self._authenticator.prepare(method, params, signed=signed)
        return await self._send(method, request)

    def api_with_callback(
        self,
        method: str,
        params: Optional[Mapping[str, Any]],
        callback: Callback,
    ) -> None:
        """Schedule `api()` on the running loop and report through `callback(error, result)`.

        The callback is the only channel: it runs exactly once and no task is
        handed back. Unknown methods are rejected synchronously, like `api()`
        does before any I/O.
        """
        classify(method)
        task = asyncio.ensure_future(self.api(method, params))
        self._callback_tasks.add(task)

        def _done(fut: "asyncio.Future[Any]") -> None:
            self._callback_tasks.discard(fut)
            if fut.cancelled():
                callback(asyncio.CancelledError(), None)
            elif fut.exception() is not None:
                callback(fut.exception(), None)
            else:
                callback(None, fut.result())

        task.add_done_callback(_done)

    async def _send(self, method: str, request: PreparedRequest) -> Any:
        headers = dict(request.headers)
        headers["User-Agent"] = self._config.user_agent
        logger.debug(
            "binance_request method=%s signed=%s params=%s",
            method,
            request.signed,
            redact_params(request.params),
        )
        raw = await self._transport.request(
            "POST",
            request.url,
            headers=headers,
            body=dict(request.params),
            timeout=self._config.timeout_seconds,
        )
        try:
            return normalize_response(decode_body(raw))
        except RemoteApiError as exc:
            logger.warning("binance_%s_failed err=%s", method, exc)
            raise


__all__ = ["BinanceClient", "redact_params"]
