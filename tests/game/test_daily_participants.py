from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.core.redis_keys import DAILY_PARTICIPANT_COUNT_TTL_SECONDS, participant_count_key
from app.game.daily.participants import (
    get_participant_count,
    increment_participant_count,
    reset_participant_count,
)
from tests.redis_fakes import FakeRedis

NOW = datetime(2026, 3, 10, 8, 30, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_increment_sets_ttl_once_and_counts() -> None:
    redis = FakeRedis()

    assert await increment_participant_count(redis, now_utc=NOW) == 1
    assert await increment_participant_count(redis, now_utc=NOW) == 2

    key = participant_count_key("2026-03-10")
    assert redis.ttls[key] == DAILY_PARTICIPANT_COUNT_TTL_SECONDS
    assert [call for call in redis.calls if call[0] == "expire"] == [("expire", key)]
    assert await get_participant_count(redis, day="2026-03-10") == 2


@pytest.mark.asyncio
async def test_reset_clears_counter() -> None:
    redis = FakeRedis()
    await increment_participant_count(redis, now_utc=NOW)

    await reset_participant_count(redis, day="2026-03-10")

    assert await get_participant_count(redis, day="2026-03-10") == 0
