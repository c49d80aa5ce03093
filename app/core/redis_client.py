from __future__ import annotations

from redis.asyncio import Redis

from app.core.config import get_settings


def build_redis_client(url: str | None = None) -> Redis:
    settings = get_settings()
    return Redis.from_url(
        url or settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout_seconds,
    )
