from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

from app.core.config import get_settings
from app.core.redis_client import build_redis_client
from app.workers.celery_app import celery_app
from app.workers.scheduler import SchedulerHealthStatus, create_scheduler_health_check, describe_cron_expression
from app.workers.scheduler_state import load_last_run
from app.workers.tasks.daily_reset import DAILY_RESET_JOB_NAME
from app.workers.tasks.daily_reset_schedule import resolve_daily_reset_cron

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": "ok"}
    if extra:
        payload.update(extra)
    return payload


def _failed_check(error: str) -> dict[str, str]:
    return {"status": "failed", "error": error}


async def _check_redis() -> dict[str, Any]:
    redis_client: Redis | None = None
    try:
        redis_client = build_redis_client()
        pong = await redis_client.ping()
        if pong is not True:
            return _failed_check("unexpected_redis_ping_response")
        return _ok_check()
    except Exception:
        logger.warning("health_redis_check_failed", exc_info=True)
        return _failed_check("redis_unavailable")
    finally:
        if redis_client is not None:
            await redis_client.aclose()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        if inspector is None:
            return _failed_check("celery inspector is unavailable")

        replies = inspector.ping() or {}
        if not replies:
            return _failed_check("no celery workers responded to ping")

        return _ok_check({"workers": len(replies)})
    except Exception:
        logger.warning("health_celery_check_failed", exc_info=True)
        return _failed_check("celery_unavailable")


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _check_daily_reset_job() -> dict[str, Any]:
    cron = resolve_daily_reset_cron(get_settings().daily_reset_cron)
    redis_client: Redis | None = None
    try:
        redis_client = build_redis_client()
        last_execution, last_result = await load_last_run(redis_client, job_name=DAILY_RESET_JOB_NAME)
    except Exception:
        logger.warning("health_scheduler_check_failed", exc_info=True)
        return _failed_check("scheduler_state_unavailable")
    finally:
        if redis_client is not None:
            await redis_client.aclose()

    check = create_scheduler_health_check(DAILY_RESET_JOB_NAME, last_execution, None, last_result)
    return {
        "status": check.status.value,
        "message": check.message,
        "job_name": check.job_name,
        "last_execution": check.last_execution,
        "schedule": describe_cron_expression(cron),
    }


async def _collect_checks() -> dict[str, dict[str, Any]]:
    checks = await asyncio.gather(
        _check_redis(),
        _check_celery_worker(),
    )
    return {
        "redis": checks[0],
        "celery": checks[1],
    }


def _all_checks_ok(checks: dict[str, dict[str, Any]]) -> bool:
    return all(check.get("status") == "ok" for check in checks.values())


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    checks = await _collect_checks()
    is_healthy = _all_checks_ok(checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ok" if is_healthy else "degraded",
            "checks": checks,
        },
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    redis_check = await _check_redis()
    checks = {"redis": redis_check}
    is_ready = _all_checks_ok(checks)
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if is_ready else "not_ready",
            "checks": checks,
        },
    )


@router.get("/health/scheduler")
async def scheduler_health() -> JSONResponse:
    check = await _check_daily_reset_job()
    is_error = check["status"] in {SchedulerHealthStatus.ERROR.value, "failed"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE if is_error else status.HTTP_200_OK,
        content={"jobs": {DAILY_RESET_JOB_NAME: check}},
    )
