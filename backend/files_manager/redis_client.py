"""Redis client construction (sessions and job queues share one client)."""

import redis.asyncio as redis
from redis.asyncio import Redis


def create_redis(url: str) -> Redis:
    """Return an async Redis client decoding responses to str. Connects lazily."""
    return redis.from_url(url, decode_responses=True)


async def redis_alive(client: Redis) -> bool:
    try:
        return bool(await client.ping())
    except redis.RedisError:
        return False
