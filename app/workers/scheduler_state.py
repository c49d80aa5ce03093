from __future__ import annotations

import json
from datetime import datetime

from redis.asyncio import Redis

from app.core.redis_keys import scheduler_last_run_key
from app.workers.scheduler import SchedulerJobResult

LAST_RUN_TTL_SECONDS = 7 * 24 * 60 * 60


async def record_last_run(
    redis: Redis,
    *,
    job_name: str,
    executed_at: datetime,
    result: SchedulerJobResult,
) -> None:
    payload = {"executed_at": executed_at.isoformat(), "result": result.to_dict()}
    await redis.set(
        scheduler_last_run_key(job_name),
        json.dumps(payload, default=str),
        ex=LAST_RUN_TTL_SECONDS,
    )


async def load_last_run(redis: Redis, *, job_name: str) -> tuple[datetime | None, SchedulerJobResult | None]:
    raw = await redis.get(scheduler_last_run_key(job_name))
    if raw is None:
        return None, None
    payload = json.loads(raw)
    return datetime.fromisoformat(payload["executed_at"]), SchedulerJobResult.from_dict(payload["result"])
