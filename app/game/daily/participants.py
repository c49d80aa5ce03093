from __future__ import annotations

from datetime import datetime

import structlog
from redis.asyncio import Redis

from app.core.redis_keys import DAILY_PARTICIPANT_COUNT_TTL_SECONDS, participant_count_key, utc_date_str

logger = structlog.get_logger(__name__)


async def increment_participant_count(redis: Redis, *, now_utc: datetime | None = None) -> int:
    key = participant_count_key(utc_date_str(now_utc))
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, DAILY_PARTICIPANT_COUNT_TTL_SECONDS)
    return int(count)


async def get_participant_count(redis: Redis, *, day: str | None = None) -> int:
    raw = await redis.get(participant_count_key(day))
    return int(raw) if raw is not None else 0


async def reset_participant_count(redis: Redis, *, day: str | None = None) -> None:
    key = participant_count_key(day)
    await redis.delete(key)
    logger.info("daily_participant_count_reset", key=key)
