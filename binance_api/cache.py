"""Response caches for public market data served by the MCP server."""
from __future__ import annotations

import copy
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Union

import redis
import redis.asyncio as aioredis

from .config import CacheConfig, RedisConfig

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Thread-safe TTL cache with max size.

    Values are deep-copied in and out, so callers never share a cached object.
    """

    def __init__(self, ttl_seconds: int = 10, maxsize: int = 1024) -> None:
        self._ttl = ttl_seconds
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._store: Dict[Hashable, CacheEntry] = {}

    def _purge_expired(self) -> None:
        now = time.time()
        for k in [k for k, v in self._store.items() if v.expires_at <= now]:
            self._store.pop(k, None)

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            self._purge_expired()
            entry = self._store.get(key)
            return None if entry is None else copy.deepcopy(entry.value)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._purge_expired()
            if key not in self._store and len(self._store) >= self._maxsize:
                # evict the entry closest to expiry
                oldest_key = min(self._store.items(), key=lambda kv: kv[1].expires_at)[0]
                self._store.pop(oldest_key, None)
            self._store[key] = CacheEntry(value=copy.deepcopy(value), expires_at=time.time() + self._ttl)

    async def get_or_fetch(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        self.set(key, value)
        return value


class RedisCache:
    """Redis-backed cache, shared across server instances. Values are stored as JSON.

    Reads and writes go through redis.asyncio. Reachability is checked once,
    synchronously, when the cache is constructed.
    """

    def __init__(
        self,
        ttl_seconds: int = 10,
        redis_host: str = "localhost",
        redis_port: int = 6379,
        redis_db: int = 0,
        redis_password: Optional[str] = None,
        key_prefix: str = "binance_api:",
    ) -> None:
        options = dict(host=redis_host, port=redis_port, db=redis_db, password=redis_password)
        check = redis.Redis(socket_connect_timeout=2, **options)
        try:
            check.ping()
        except redis.RedisError as e:
            raise ConnectionError(f"Failed to connect to Redis at {redis_host}:{redis_port}: {e}") from e
        finally:
            check.close()
        self._redis = aioredis.Redis(decode_responses=False, **options)
        self._ttl = ttl_seconds
        self._prefix = key_prefix

    def _key(self, key: Hashable) -> str:
        return self._prefix + str(key)

    async def get(self, key: Hashable) -> Optional[Any]:
        try:
            data = await self._redis.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("cache_read_failed key=%s err=%s", key, e)
            return None
        if data is None:
            return None
        return json.loads(data.decode("utf-8"))

    async def set(self, key: Hashable, value: Any) -> None:
        try:
            await self._redis.setex(self._key(key), self._ttl, json.dumps(value).encode("utf-8"))
        except redis.RedisError as e:
            # a failed write only costs a refetch next time
            logger.warning("cache_write_failed key=%s err=%s", key, e)

    async def get_or_fetch(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await factory()
        await self.set(key, value)
        return value

    async def aclose(self) -> None:
        await self._redis.aclose()


ResponseCache = Union[TTLCache, RedisCache]


def build_cache(cache_config: CacheConfig, redis_config: Optional[RedisConfig] = None) -> ResponseCache:
    """Redis when enabled and reachable, otherwise the in-memory cache."""
    if cache_config.use_redis:
        redis_config = redis_config or RedisConfig()
        try:
            return RedisCache(
                ttl_seconds=cache_config.ttl_seconds,
                redis_host=redis_config.host,
                redis_port=redis_config.port,
                redis_db=redis_config.db,
                redis_password=redis_config.password,
            )
        except ConnectionError as e:
            logger.warning("Redis cache unavailable, using in-memory cache: %s", e)
    return TTLCache(ttl_seconds=cache_config.ttl_seconds, maxsize=cache_config.maxsize)
