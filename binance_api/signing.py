"""Nonce generation, canonical parameter encoding and request signing."""
from __future__ import annotations

import hashlib
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlencode

from .config import ClientConfig
from .errors import MissingCredentialsError
from .methods import requires_signature

API_KEY_HEADER = "X-MBX-APIKEY"


def _now_ms() -> int:
    """Get current timestamp in milliseconds."""
    return int(time.time() * 1000)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_params(params: Optional[Mapping[str, Any]]) -> str:
    """
    Canonical form encoding: keys keep their insertion order, values are
    stringified, None values are dropped.
    """
    if not params:
        return ""
    return urlencode([(k, _format_value(v)) for k, v in params.items() if v is not None])


def sign_payload(encoded_params: str, secret: str) -> str:
    """signature = sha256(encoded_params + "|" + secret), lowercase hex."""
    return hashlib.sha256((encoded_params + "|" + secret).encode("utf-8")).hexdigest()


class NonceGenerator:
    """Per-client nonce source: milliseconds x 1000, strictly increasing.

    The wall clock only has millisecond resolution here, so two calls in the
    same tick would collide; the second one is bumped past the last issued value.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _now_ms
        self._lock = threading.Lock()
        self._last = 0

    def __call__(self) -> int:
        with self._lock:
            candidate = self._clock() * 1000
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


@dataclass
class PreparedRequest:
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    signed: bool = False


class RequestAuthenticator:
    """Turns a private method call into an authenticated request."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        nonce_source: Optional[Callable[[], int]] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self._config = config
        self._clock = clock or _now_ms
        self._nonce = nonce_source or NonceGenerator(self._clock)

    def is_signed(self, method: str) -> bool:
        return requires_signature(method, self._config.signed_methods)

    def prepare(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        signed: Optional[bool] = None,
    ) -> PreparedRequest:
        config = self._config
        if signed is None:
            signed = self.is_signed(method)

        if signed and not config.api_secret:
            raise MissingCredentialsError(f"API secret required to sign {method}")

        payload: Dict[str, Any] = dict(params or {})
        if not payload.get("nonce"):
            payload["nonce"] = self._nonce()
        if config.otp is not None:
            payload["otp"] = config.otp

        if signed:
            signature = sign_payload(encode_params(payload), config.api_secret)
            payload["timestamp"] = self._clock()
            payload["signature"] = signature

        url = config.url + config.private_path + method + "?" + encode_params(payload)
        return PreparedRequest(
            url=url,
            headers={API_KEY_HEADER: config.api_key} if config.api_key else {},
            params=payload,
            signed=signed,
        )
