"""Redis pub/sub delegation of API calls to a pool of workers."""
from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import redis.asyncio as aioredis

from .config import PubSubConfig, RedisConfig
from .errors import BinanceApiError

if TYPE_CHECKING:
    from .client import BinanceClient

logger = logging.getLogger(__name__)


class RemoteWorkerError(Exception):
    """An API call failed on the worker side."""

    def __init__(self, message: str, error_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.error_type = error_type


class RedisPubSub:
    """Request/response over two Redis channels.

    Clients publish {"id", "method", "params"}; a worker runs the call through
    BinanceClient.api and publishes {"id", "result"} or {"id", "error", "error_type"}.
    """

    def __init__(self, redis_config: RedisConfig, pubsub_config: PubSubConfig) -> None:
        self._redis_config = redis_config
        self._pubsub_config = pubsub_config
        self._redis: Optional[aioredis.Redis] = None
        self._pubsub: Optional[aioredis.client.PubSub] = None
        self._listener: Optional[asyncio.Task] = None
        self._pending_responses: Dict[str, asyncio.Future] = {}

    async def connect(self) -> None:
        self._redis = aioredis.Redis(
            host=self._redis_config.host,
            port=self._redis_config.port,
            db=self._redis_config.db,
            password=self._redis_config.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        if self._listener:
            self._listener.cancel()
            self._listener = None
        if self._pubsub:
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def publish_request(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        timeout: float = 30.0,
    ) -> Any:
        """Publish an API call and wait for a worker's answer.

        Raises:
            TimeoutError: no response within `timeout` seconds
            RemoteWorkerError: the worker reported a failure
        """
        request_id = str(uuid.uuid4())
        request = {"id": request_id, "method": method, "params": dict(params or {})}

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending_responses[request_id] = future

        if not self._pubsub:
            self._pubsub = self._redis.pubsub()
            await self._pubsub.subscribe(self._pubsub_config.response_channel)
            self._listener = asyncio.create_task(self._listen_responses())

        await self._redis.publish(self._pubsub_config.request_channel, json.dumps(request))

        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            self._pending_responses.pop(request_id, None)
            raise TimeoutError(f"Request {request_id} timed out after {timeout}s")

    async def _listen_responses(self) -> None:
        async for message in self._pubsub.listen():
            if message["type"] != "message":
                continue
            try:
                response = json.loads(message["data"])
            except ValueError:
                response = None
            if not isinstance(response, dict):
                logger.warning("Dropping malformed response: %r", message["data"])
                continue
            future = self._pending_responses.pop(response.get("id"), None)
            if future is None or future.done():
                continue
            if "error" in response:
                future.set_exception(RemoteWorkerError(response["error"], response.get("error_type")))
            else:
                future.set_result(response.get("result"))

    async def handle_request(self, client: "BinanceClient", request: Mapping[str, Any]) -> Dict[str, Any]:
        """Run one request through the client and build the response message."""
        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params")
        if not isinstance(method, str):
            return {"id": request_id, "error": "Missing API method", "error_type": "InvalidMethodError"}
        if params is not None and not isinstance(params, Mapping):
            return {"id": request_id, "error": "API params must be an object", "error_type": "InvalidParamsError"}
        try:
            result = await client.api(method, params)
        except BinanceApiError as e:
            return {"id": request_id, "error": str(e), "error_type": type(e).__name__}
        return {"id": request_id, "result": result}

    async def start_worker(self, client: "BinanceClient") -> None:
        """Process requests from the request channel until cancelled."""
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._pubsub_config.request_channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    request = json.loads(message["data"])
                except ValueError:
                    request = None
                if not isinstance(request, dict):
                    logger.warning("Dropping malformed request: %r", message["data"])
                    continue
                try:
                    response = await self.handle_request(client, request)
                except Exception as e:
                    logger.exception("Worker failed on request %r", request.get("id"))
                    response = {"id": request.get("id"), "error": str(e), "error_type": type(e).__name__}
                await self._redis.publish(self._pubsub_config.response_channel, json.dumps(response))
        finally:
            await pubsub.unsubscribe()
            await pubsub.aclose()
