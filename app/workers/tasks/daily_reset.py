from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from redis.asyncio import Redis

from app.core.config import get_settings
from app.core.redis_client import build_redis_client
from app.core.redis_keys import utc_date_str
from app.game.daily.images import ImageCollection, load_image_collection
from app.game.daily.participants import reset_participant_count
from app.game.daily.state import initialize_daily_game_state, reset_daily_game_state
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app
from app.workers.scheduler import SchedulerJobContext, describe_cron_expression, execute_scheduler_job
from app.workers.scheduler_state import record_last_run
from app.workers.tasks.daily_reset_schedule import (
    DAILY_RESET_TASK_NAME,
    configure_daily_reset_schedule,
    resolve_daily_reset_cron,
)

logger = structlog.get_logger(__name__)

DAILY_RESET_JOB_NAME = "daily-reset"


async def reset_daily_state(
    redis: Redis,
    *,
    now_utc: datetime,
    image_collection: ImageCollection | None = None,
) -> dict[str, object]:
    """Closes out the previous UTC day and prepares today's round set.

    The day that just ended is cleared, never the current one, so a run at any
    hour leaves today's participants untouched.
    """
    previous_day = utc_date_str(now_utc - timedelta(days=1))
    today = utc_date_str(now_utc)

    await reset_participant_count(redis, day=previous_day)
    await reset_daily_game_state(redis, day=previous_day)

    initialized = False
    if image_collection is not None:
        await initialize_daily_game_state(redis, image_collection, day=today)
        initialized = True

    return {"date": today, "cleared_date": previous_day, "daily_game_initialized": initialized}


def _configured_image_collection() -> ImageCollection | None:
    manifest_path = get_settings().image_manifest_path
    if not manifest_path:
        return None
    return load_image_collection(manifest_path)


async def run_daily_reset_async(*, redis: Redis | None = None) -> dict[str, object]:
    now_utc = datetime.now(timezone.utc)
    cron = resolve_daily_reset_cron(get_settings().daily_reset_cron)
    client = redis if redis is not None else build_redis_client()

    try:
        result = await execute_scheduler_job(
            DAILY_RESET_JOB_NAME,
            lambda: reset_daily_state(client, now_utc=now_utc, image_collection=_configured_image_collection()),
            SchedulerJobContext(
                job_name=DAILY_RESET_JOB_NAME,
                scheduled_time=describe_cron_expression(cron),
                execution_time=now_utc.isoformat(),
            ),
        )
        try:
            await record_last_run(client, job_name=DAILY_RESET_JOB_NAME, executed_at=now_utc, result=result)
        except Exception:
            logger.exception("daily_reset_last_run_record_failed", job_name=DAILY_RESET_JOB_NAME)
    finally:
        if redis is None:
            await client.aclose()

    return result.to_dict()


@celery_app.task(name=DAILY_RESET_TASK_NAME)
def run_daily_reset() -> dict[str, object]:
    return run_async_job(run_daily_reset_async())


configure_daily_reset_schedule(celery_app)
