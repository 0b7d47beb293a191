"""Redis connection shared by the request layer."""

from typing import Optional

from redis import asyncio as aioredis

from mystep.config import get_settings

client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    """Get the Redis client for dependency injection."""
    global client

    if client is None:
        client = aioredis.from_url(get_settings().redis_url)
    return client


async def close_redis() -> None:
    """Close the Redis client."""
    global client

    if client is not None:
        await client.aclose()
        client = None
