from urllib.parse import parse_qsl

import httpx
import pytest

from binance_api.client import BinanceClient
from binance_api.config import ClientConfig
from binance_api.errors import RemoteApiError, TransportError
from binance_api.transport import HttpxTransport


def _transport(handler) -> HttpxTransport:
    return HttpxTransport(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_posts_form_encoded_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = dict(parse_qsl(request.content.decode()))
        return httpx.Response(200, text='{"ok": true}')

    text = await _transport(handler).request(
        "POST",
        "https://binance.com/api/v1/order?symbol=BTCUSDT",
        headers={"X-MBX-APIKEY": "k"},
        body={"symbol": "BTCUSDT", "reduceOnly": True, "price": None},
        timeout=1.0,
    )

    assert text == '{"ok": true}'
    assert seen["method"] == "POST"
    assert seen["url"] == "https://binance.com/api/v1/order?symbol=BTCUSDT"
    assert seen["headers"]["X-MBX-APIKEY"] == "k"
    assert seen["body"] == {"symbol": "BTCUSDT", "reduceOnly": "true"}


@pytest.mark.asyncio
async def test_empty_body_sends_no_content():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.content == b""
        return httpx.Response(200, text="{}")

    assert await _transport(handler).request("POST", "https://binance.com/api/v1/ping", headers={}, body={}, timeout=1.0) == "{}"


@pytest.mark.asyncio
async def test_non_2xx_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(418, text='{"code": -1003}')

    with pytest.raises(TransportError) as excinfo:
        await _transport(handler).request("POST", "https://binance.com/api/v1/ping", headers={}, body={}, timeout=1.0)
    assert excinfo.value.status_code == 418
    assert excinfo.value.body == '{"code": -1003}'


@pytest.mark.asyncio
async def test_timeout_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransportError, match="Timeout"):
        await _transport(handler).request("POST", "https://binance.com/api/v1/ping", headers={}, body={}, timeout=0.1)


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError, match="Connection error") as excinfo:
        await _transport(handler).request("POST", "https://binance.com/api/v1/ping", headers={}, body={}, timeout=1.0)
    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_client_end_to_end_over_httpx():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url.path == "/api/v1/order":
            return httpx.Response(200, json={"error": ["E-2010", "EAccount has insufficient balance"]})
        return httpx.Response(200, json={"serverTime": 1})

    client = BinanceClient(ClientConfig(api_key="k", api_secret="s"), transport=_transport(handler))
    assert await client.api("time") == {"serverTime": 1}
    with pytest.raises(RemoteApiError, match="2010, Account has insufficient balance"):
        await client.api("order", {"symbol": "BTCUSDT", "side": "BUY"})

    assert calls[0].headers["User-Agent"] == "Binance Python API Client"
    assert "X-MBX-APIKEY" not in calls[0].headers
    assert calls[1].headers["X-MBX-APIKEY"] == "k"
    assert "signature" in dict(calls[1].url.params)


@pytest.mark.asyncio
async def test_owned_client_is_reused_and_closed(monkeypatch):
    created = []
    real_async_client = httpx.AsyncClient

    def factory(**kwargs):
        client = real_async_client(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="{}")), **kwargs)
        created.append(client)
        return client

    monkeypatch.setattr("binance_api.transport.httpx.AsyncClient", factory)
    transport = HttpxTransport()
    for _ in range(3):
        await transport.request("POST", "https://binance.com/api/v1/ping", headers={}, body={}, timeout=1.0)

    assert len(created) == 1
    await transport.aclose()
    assert created[0].is_closed


@pytest.mark.asyncio
async def test_injected_client_is_left_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="{}")))
    transport = HttpxTransport(client)
    await transport.request("POST", "https://binance.com/api/v1/ping", headers={}, body={}, timeout=1.0)
    await transport.aclose()
    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_binance_client_closes_its_own_transport(monkeypatch):
    created = []
    real_async_client = httpx.AsyncClient

    def factory(**kwargs):
        client = real_async_client(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="{}")), **kwargs)
        created.append(client)
        return client

    monkeypatch.setattr("binance_api.transport.httpx.AsyncClient", factory)
    async with BinanceClient() as client:
        await client.api("ping")
        await client.api("time")

    assert len(created) == 1
    assert created[0].is_closed
