"""
Cafeteria — Redis connection for the redis broadcast backend

One pooled client per process. Publishes and every SSE subscriber's pub/sub
connection are drawn from its pool; nothing here is touched when
BROADCAST_BACKEND=memory.
"""
import redis.asyncio as aioredis
from cafeteria.core.config import get_settings

settings = get_settings()
_client: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            client_name=settings.SERVICE_NAME,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
            # idle pub/sub sockets are pinged so a dead broker surfaces on the next read
            health_check_interval=settings.SSE_KEEPALIVE_INTERVAL_SECONDS,
        )
    return _client


async def close_redis():
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
