"""Error hierarchy for the Binance API client."""
from __future__ import annotations

from typing import List, Optional


class BinanceApiError(Exception):
    """Base error for the Binance API client."""


class InvalidMethodError(BinanceApiError):
    """Raised when a requested API method is neither public nor private."""

    def __init__(self, method: str) -> None:
        super().__init__(f"{method} is not a valid API method.")
        self.method = method


class MissingCredentialsError(BinanceApiError):
    """Raised when a private call is attempted without the key or secret it needs."""


class TransportError(BinanceApiError):
    """Raised when the HTTP request fails: connection, timeout or non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RemoteApiError(BinanceApiError):
    """Raised when the exchange answers with an error payload."""

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class ResponseDecodeError(RemoteApiError):
    """Raised when the exchange answers with a body that is not JSON."""
