"""Logging setup with secret scrubbing."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

LOGGER_NAME = "binance_api"


def scrub(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        text = text.replace(secret, "***")
    return text


class SecretRedactingFilter(logging.Filter):
    """Replaces configured credential values in log records with ***."""

    def __init__(self, secrets: Iterable[Optional[str]]) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        record.msg = scrub(record.getMessage(), self._secrets)
        record.args = None
        return True


def configure_logging(
    level: int = logging.INFO,
    *,
    secrets: Iterable[Optional[str]] = (),
) -> logging.Logger:
    """Attach a console handler to the package logger. Safe to call twice."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handler.addFilter(SecretRedactingFilter(secrets))
    logger.addHandler(handler)
    return logger
