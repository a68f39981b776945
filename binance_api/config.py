"""Configuration for the Binance API client, MCP server and worker."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from .methods import DEFAULT_SIGNED_METHODS

DEFAULT_URL = "https://binance.com"
DEFAULT_API_PATH = "/api/v1/"
DEFAULT_USER_AGENT = "Binance Python API Client"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class ClientConfig:
    """Per-client settings. Frozen: one instance never observes another's changes."""

    api_key: Optional[str] = None
    api_secret: Optional[str] = field(default=None, repr=False)
    url: str = DEFAULT_URL
    public_path: str = DEFAULT_API_PATH
    private_path: str = DEFAULT_API_PATH
    timeout_ms: int = 5000
    otp: Optional[str] = field(default=None, repr=False)
    signed_methods: FrozenSet[str] = DEFAULT_SIGNED_METHODS
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            api_key=os.getenv("BINANCE_API_KEY"),
            api_secret=os.getenv("BINANCE_API_SECRET"),
            url=os.getenv("BINANCE_URL", DEFAULT_URL),
            timeout_ms=int(os.getenv("BINANCE_TIMEOUT_MS", "5000")),
            otp=os.getenv("BINANCE_OTP"),
        )


@dataclass
class CacheConfig:
    ttl_seconds: int = 10
    maxsize: int = 1024
    use_redis: bool = False


@dataclass
class RedisConfig:
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    decode_responses: bool = True


@dataclass
class PubSubConfig:
    request_channel: str = "binance_api:requests"
    response_channel: str = "binance_api:responses"
    enabled: bool = False


@dataclass
class ServerConfig:
    client: ClientConfig = field(default_factory=ClientConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)
    pubsub: PubSubConfig = field(default_factory=PubSubConfig)

    @classmethod
    def from_env(cls, *, pubsub_enabled: bool = False) -> "ServerConfig":
        return cls(
            client=ClientConfig.from_env(),
            cache=CacheConfig(
                use_redis=_env_flag("USE_REDIS_CACHE", "false"),
                ttl_seconds=int(os.getenv("CACHE_TTL", "10")),
            ),
            redis=RedisConfig(
                host=os.getenv("REDIS_HOST", "localhost"),
                port=int(os.getenv("REDIS_PORT", "6379")),
                db=int(os.getenv("REDIS_DB", "0")),
                password=os.getenv("REDIS_PASSWORD"),
            ),
            pubsub=PubSubConfig(
                enabled=pubsub_enabled,
                request_channel=os.getenv("REQUEST_CHANNEL", "binance_api:requests"),
                response_channel=os.getenv("RESPONSE_CHANNEL", "binance_api:responses"),
            ),
        )


DEFAULT_CLIENT_CONFIG = ClientConfig()
DEFAULT_CONFIG = ServerConfig()
