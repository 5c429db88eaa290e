import redis.asyncio as redis
from app.core.config import REDIS_URL, REDIS_SOCKET_TIMEOUT


async def create_redis(url: str = REDIS_URL) -> redis.Redis:
    return redis.from_url(
        url,
        decode_responses=True,
        health_check_interval=30,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
    )


async def close_redis(r: redis.Redis | None) -> None:
    if r is not None:
        await r.aclose()
