"""Async client for the Binance REST API."""
from .client import BinanceClient
from .config import ClientConfig
from .errors import (
    BinanceApiError,
    InvalidMethodError,
    MissingCredentialsError,
    RemoteApiError,
    ResponseDecodeError,
    TransportError,
)
from .methods import PRIVATE_METHODS, PUBLIC_METHODS

__all__ = [
    "BinanceClient",
    "ClientConfig",
    "BinanceApiError",
    "InvalidMethodError",
    "MissingCredentialsError",
    "RemoteApiError",
    "ResponseDecodeError",
    "TransportError",
    "PUBLIC_METHODS",
    "PRIVATE_METHODS",
]
