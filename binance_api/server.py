"""MCP server exposing the Binance REST API as tools."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .cache import ResponseCache, build_cache
from .client import BinanceClient
from .config import DEFAULT_CONFIG, ServerConfig
from .errors import BinanceApiError
from .log import configure_logging
from .pubsub import RedisPubSub

logger = logging.getLogger(__name__)

# Module-level state, replaced wholesale by configure_server()
_config = DEFAULT_CONFIG
server = FastMCP("binance-api")
_client = BinanceClient(_config.client)
_cache: ResponseCache = build_cache(_config.cache, _config.redis)
_pubsub: Optional[RedisPubSub] = None


def _error(exc: BinanceApiError) -> Dict[str, Any]:
    return {"error": str(exc), "error_type": type(exc).__name__}


async def _cached_public(method: str, params: Dict[str, Any]) -> Any:
    key = (method,) + tuple(sorted(params.items()))
    return await _cache.get_or_fetch(key, lambda: _client.api(method, params))


@server.tool()
async def ping() -> Dict[str, Any]:
    """Test connectivity to the exchange."""
    try:
        return await _client.api("ping")
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def server_time() -> Dict[str, Any]:
    """Get the exchange server time."""
    try:
        return await _client.api("time")
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def order_book(symbol: str, limit: int = 100) -> Dict[str, Any]:
    """Get the order book (depth) for a symbol such as BTCUSDT."""
    try:
        return await _cached_public("depth", {"symbol": symbol.upper(), "limit": limit})
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def agg_trades(symbol: str, limit: int = 500) -> Any:
    """Get compressed, aggregate trades for a symbol."""
    try:
        return await _cached_public("aggTrades", {"symbol": symbol.upper(), "limit": limit})
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def klines(symbol: str, interval: str = "1h", limit: int = 100) -> Any:
    """Get candlesticks for a symbol.

    interval: one of 1m, 3m, 5m, 15m, 30m, 1h, 2h, 4h, 6h, 8h, 12h, 1d, 3d, 1w, 1M
    """
    try:
        return await _cached_public(
            "klines", {"symbol": symbol.upper(), "interval": interval, "limit": limit}
        )
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def ticker_price(symbol: str) -> Any:
    """Get the latest price ticker for a symbol."""
    try:
        return await _cached_public("ticker", {"symbol": symbol.upper()})
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def ticker_24hr(symbol: str) -> Any:
    """Get 24 hour price change statistics for a symbol."""
    try:
        return await _cached_public("ticker/24hr", {"symbol": symbol.upper()})
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def account() -> Dict[str, Any]:
    """Get account information. Requires API key and secret."""
    try:
        return await _client.api("account")
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def open_orders(symbol: Optional[str] = None) -> Any:
    """List open orders, optionally for one symbol."""
    params = {"symbol": symbol.upper()} if symbol else {}
    try:
        return await _client.api("openOrders", params)
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def my_trades(symbol: str, limit: int = 500) -> Any:
    """List account trades for a symbol."""
    try:
        return await _client.api("myTrades", {"symbol": symbol.upper(), "limit": limit})
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def test_order(
    symbol: str,
    side: str,
    type: str = "MARKET",
    quantity: Optional[str] = None,
    price: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate a new order without sending it to the matching engine."""
    params: Dict[str, Any] = {"symbol": symbol.upper(), "side": side.upper(), "type": type.upper()}
    if quantity is not None:
        params["quantity"] = quantity
    if price is not None:
        params["price"] = price
    try:
        return await _client.api("order/test", params)
    except BinanceApiError as exc:
        return _error(exc)


@server.tool()
async def call_api(method: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Call any supported API method by name, e.g. 'ticker/24hr' or 'allOrders'."""
    try:
        return await _client.api(method, params)
    except BinanceApiError as exc:
        return _error(exc)


def main() -> None:
    """Entry point to run the MCP server over stdio."""
    configure_server(ServerConfig.from_env())
    configure_logging(secrets=(_config.client.api_key, _config.client.api_secret))
    server.run()


async def start_worker() -> None:
    """Serve API calls published on the Redis request channel instead of stdio."""
    global _pubsub

    if not _config.pubsub.enabled:
        raise RuntimeError("Pub/sub is not enabled in configuration")

    _pubsub = RedisPubSub(_config.redis, _config.pubsub)
    await _pubsub.connect()
    logger.info("Worker started, listening on %s", _config.pubsub.request_channel)

    try:
        await _pubsub.start_worker(_client)
    finally:
        await _pubsub.disconnect()
        await _client.aclose()


def configure_server(config: ServerConfig, *, client: Optional[BinanceClient] = None) -> None:
    """Replace the server's config, client and cache."""
    global _config, _client, _cache
    _config = config
    _client = client or BinanceClient(config.client)
    _cache = build_cache(config.cache, config.redis)


if __name__ == "__main__":  # pragma: no cover
    main()
