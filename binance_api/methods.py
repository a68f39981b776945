"""Known API methods and their dispatch classification."""
from __future__ import annotations

from enum import Enum
from typing import AbstractSet

from .errors import InvalidMethodError

PUBLIC_METHODS = frozenset(
    {"ping", "time", "depth", "aggTrades", "klines", "ticker", "ticker/24hr"}
)

PRIVATE_METHODS = frozenset(
    {"order", "order/test", "account", "openOrders", "allOrders", "myTrades", "userDataStream"}
)

# userDataStream only needs the API key header.
DEFAULT_SIGNED_METHODS = PRIVATE_METHODS - {"userDataStream"}


class MethodKind(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


def classify(method: str) -> MethodKind:
    """Return how `method` must be dispatched.

    Raises InvalidMethodError for names outside both sets; this happens before
    any request is built.
    """
    if method in PUBLIC_METHODS:
        return MethodKind.PUBLIC
    if method in PRIVATE_METHODS:
        return MethodKind.PRIVATE
    raise InvalidMethodError(method)


def requires_signature(method: str, signed_methods: AbstractSet[str]) -> bool:
    return method in PRIVATE_METHODS and method in signed_methods
