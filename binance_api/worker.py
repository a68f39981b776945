"""Worker entry point for Redis pub/sub mode."""
from __future__ import annotations

import asyncio
import logging
import sys

from binance_api.config import ServerConfig
from binance_api.log import configure_logging
from binance_api.server import configure_server, start_worker


def main() -> None:
    """Start a Redis pub/sub worker configured from the environment."""
    config = ServerConfig.from_env(pubsub_enabled=True)
    logger = configure_logging(
        logging.INFO, secrets=(config.client.api_key, config.client.api_secret)
    )
    configure_server(config)

    try:
        asyncio.run(start_worker())
    except KeyboardInterrupt:
        logger.info("Worker stopped")
        sys.exit(0)


if __name__ == "__main__":
    main()
