"""
Redis Client
Shared async Redis connection for the credits ledger and webhook de-duplication

Uses async Redis (redis.asyncio) to avoid blocking the event loop.
"""

from typing import Optional
import logging

import redis.asyncio as aioredis

from saas_template.config import get_settings

logger = logging.getLogger(__name__)

# Global async Redis client instance
_redis_client: Optional[aioredis.Redis] = None


async def init_redis_client() -> aioredis.Redis:
    """Initialize async Redis client from REDIS_URL"""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_url = get_settings().redis_url
    _redis_client = aioredis.from_url(
        redis_url,
        decode_responses=True,
        socket_keepalive=True,
        health_check_interval=30
    )

    logger.info(f"Async Redis client initialized: {redis_url.split('@')[-1]}")
    return _redis_client


async def get_redis_client() -> aioredis.Redis:
    """Get async Redis client instance"""
    if _redis_client is None:
        return await init_redis_client()
    return _redis_client


async def close_redis_client():
    """Close the Redis connection pool"""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Async Redis client closed")


async def check_redis_health() -> bool:
    """Ping Redis"""
    try:
        client = await get_redis_client()
        return bool(await client.ping())
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
