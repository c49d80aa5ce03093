from __future__ import annotations

import structlog
from celery.schedules import crontab

from app.core.config import get_settings
from app.workers.scheduler import describe_cron_expression, validate_job_configuration

logger = structlog.get_logger(__name__)

DAILY_RESET_TASK_NAME = "app.workers.tasks.daily_reset.run_daily_reset"
DAILY_RESET_ENDPOINT = "/internal/scheduler/daily-reset"
DEFAULT_DAILY_RESET_CRON = "0 0 * * *"


def resolve_daily_reset_cron(raw_cron: str) -> str:
    validation = validate_job_configuration(
        {"name": "daily-reset", "cron": raw_cron, "endpoint": DAILY_RESET_ENDPOINT}
    )
    if validation.is_valid:
        return " ".join(raw_cron.split())
    logger.error(
        "daily_reset_cron_invalid",
        cron=raw_cron,
        errors=validation.errors,
        fallback=DEFAULT_DAILY_RESET_CRON,
    )
    return DEFAULT_DAILY_RESET_CRON


def crontab_from_expression(cron: str) -> crontab:
    minute, hour, day_of_month, month_of_year, day_of_week = cron.split()
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


def configure_daily_reset_schedule(celery_app) -> None:
    cron = resolve_daily_reset_cron(get_settings().daily_reset_cron)
    celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
    celery_app.conf.beat_schedule.update(
        {
            "daily-reset-utc": {
                "task": DAILY_RESET_TASK_NAME,
                "schedule": crontab_from_expression(cron),
                "options": {"queue": "q_low"},
            },
        }
    )
    logger.info("daily_reset_scheduled", cron=cron, description=describe_cron_expression(cron))
