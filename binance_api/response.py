"""Decoding and error normalization for exchange responses."""
from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any, List

from .errors import RemoteApiError, ResponseDecodeError

ERROR_PREFIX = "E"
UNKNOWN_ERROR_MESSAGE = "Binance API returned an unknown error"


def decode_body(body: str) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ResponseDecodeError(f"Binance API returned a non-JSON body: {body[:200]!r}") from exc


def _strip_code(entry: str) -> str:
    message = entry[len(ERROR_PREFIX):]
    if message.startswith("-"):
        message = message[1:]
    return message


def extract_errors(error: Any) -> List[str]:
    """Keep entries that carry the error prefix, with the prefix removed.

    ["E-1013", "Einvalid quantity", "warn-only"] -> ["1013", "invalid quantity"]
    """
    if isinstance(error, str):
        error = [error]
    if not isinstance(error, Sequence):
        return []
    return [
        _strip_code(entry)
        for entry in error
        if isinstance(entry, str) and entry.startswith(ERROR_PREFIX)
    ]


def normalize_response(response: Any) -> Any:
    """Return the body on success, raise RemoteApiError when it carries errors."""
    if not isinstance(response, dict):
        return response

    error = response.get("error")
    if not error:
        return response

    errors = extract_errors(error)
    if not errors:
        raise RemoteApiError(UNKNOWN_ERROR_MESSAGE)
    raise RemoteApiError(", ".join(errors), errors)
