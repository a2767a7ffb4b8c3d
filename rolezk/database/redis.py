"""
Redis Connection
================

Process-wide async Redis client for the shared nullifier store.

Socket timeouts follow ``PROOF_STORE_TIMEOUT_SECONDS`` so that a stalled
Redis surfaces as a store outage instead of a hung request.

Version: 0.1.0
"""

import redis.asyncio as aioredis
from redis.asyncio import Redis

from rolezk.config import settings
from rolezk.config.settings import RedisSettings
from rolezk.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """Lazily created connection pool, shared by every store in the process."""

    _client: Redis | None = None  # type: ignore[type-arg]

    @classmethod
    def get_client(
        cls,
        config: RedisSettings | None = None,
        timeout_seconds: float | None = None,
    ) -> Redis:  # type: ignore[type-arg]
        """
        Return the shared client, creating it on first use.

        Args:
            config: Connection settings; defaults to ``settings.redis``
            timeout_seconds: Socket timeout; defaults to the store timeout
        """
        if cls._client is None:
            config = config or settings.redis
            timeout = timeout_seconds or settings.proof.store_timeout_seconds
            cls._client = aioredis.from_url(
                config.url,
                decode_responses=True,
                socket_timeout=timeout,
                socket_connect_timeout=timeout,
            )
            logger.info(
                "redis_client_created",
                host=config.host,
                db=config.db,
                key_prefix=config.key_prefix,
            )
        return cls._client

    @classmethod
    async def close(cls) -> None:
        if cls._client is None:
            return
        await cls._client.aclose()
        cls._client = None
        logger.info("redis_client_closed")
