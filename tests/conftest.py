import json
from typing import Any, Dict, List, Mapping

import pytest

from binance_api.client import BinanceClient
from binance_api.config import ClientConfig


class RecordingTransport:
    """Transport spy: records every request and replies with a canned body."""

    def __init__(self, response: Any = None) -> None:
        self.response = {} if response is None else response
        self.calls: List[Dict[str, Any]] = []

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Mapping[str, Any],
        timeout: float,
    ) -> str:
        self.calls.append(
            {"method": method, "url": url, "headers": dict(headers), "body": dict(body), "timeout": timeout}
        )
        if isinstance(self.response, str):
            return self.response
        return json.dumps(self.response)


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1) -> None:
        self.now += ms


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def credentials():
    return ClientConfig(api_key="my-api-key", api_secret="s3cr3t")


@pytest.fixture
def client(credentials, transport, clock):
    return BinanceClient(credentials, transport=transport, clock=clock)
