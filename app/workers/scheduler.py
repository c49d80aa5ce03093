from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from time import perf_counter
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

CRON_FIELD_COUNT = 5
# Daily jobs get an hour of slack before being reported stale.
STALE_EXECUTION_THRESHOLD = timedelta(hours=25)
INVALID_CRON_DESCRIPTION = "Invalid cron expression"
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
KNOWN_CRON_DESCRIPTIONS = {
    "0 0 * * *": "Daily at midnight (00:00 UTC)",
    "0 12 * * *": "Daily at noon (12:00 UTC)",
    "0 0 * * 0": "Weekly on Sunday at midnight (00:00 UTC)",
    "0 0 1 * *": "Monthly on the 1st at midnight (00:00 UTC)",
}

JobFunction = Callable[[], Awaitable[Any]]


class SchedulerHealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class SchedulerJobContext:
    job_name: str | None = None
    scheduled_time: str | None = None
    execution_time: str | None = None

    def as_log_fields(self) -> dict[str, str]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(slots=True)
class SchedulerJobResult:
    success: bool
    message: str
    timestamp: str
    data: Any = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
        }
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> SchedulerJobResult:
        return cls(
            success=bool(payload["success"]),
            message=str(payload["message"]),
            timestamp=str(payload["timestamp"]),
            data=payload.get("data"),
            error=payload.get("error"),
        )


@dataclass(frozen=True, slots=True)
class JobConfigValidation:
    is_valid: bool
    errors: list[str]


@dataclass(frozen=True, slots=True)
class SchedulerHealthCheck:
    job_name: str
    status: SchedulerHealthStatus
    message: str
    last_execution: str | None = None
    next_execution: str | None = None


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(started_at: float) -> int:
    return int((perf_counter() - started_at) * 1000)


def _log_fields(
    job_name: str,
    result: SchedulerJobResult,
    context: SchedulerJobContext | None,
    elapsed_ms: int,
) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "job_name": job_name,
        "success": result.success,
        "job_message": result.message,
        "job_timestamp": result.timestamp,
    }
    if context is not None:
        fields.update(context.as_log_fields())
    fields["execution_time"] = f"{elapsed_ms}ms"
    if result.data is not None:
        fields["data"] = result.data
    if result.error is not None:
        fields["error"] = result.error
    return fields


async def execute_scheduler_job(
    job_name: str,
    job_function: JobFunction,
    context: SchedulerJobContext | None = None,
) -> SchedulerJobResult:
    """Runs a scheduled job and reports its outcome as a result.

    Job failures never propagate: they come back as ``success=False`` with the
    error message, so callers can fire many jobs without their own handlers.
    """
    started_at = perf_counter()
    logger.info("scheduler_job_started", job_name=job_name)

    try:
        data = await job_function()
    except Exception as exc:
        elapsed_ms = _elapsed_ms(started_at)
        result = SchedulerJobResult(
            success=False,
            message=f"Job failed after {elapsed_ms}ms",
            timestamp=_utc_timestamp(),
            error=str(exc) or type(exc).__name__,
        )
        logger.exception("scheduler_job_failed", **_log_fields(job_name, result, context, elapsed_ms))
        return result

    elapsed_ms = _elapsed_ms(started_at)
    result = SchedulerJobResult(
        success=True,
        message=f"Job completed successfully in {elapsed_ms}ms",
        timestamp=_utc_timestamp(),
        data=data,
    )
    logger.info("scheduler_job_finished", **_log_fields(job_name, result, context, elapsed_ms))
    return result


async def run_scheduler_job_manually(job_name: str, job_function: JobFunction) -> SchedulerJobResult:
    manual_name = f"{job_name} (TEST)"
    logger.info("scheduler_job_manual_run", job_name=job_name)
    return await execute_scheduler_job(
        manual_name,
        job_function,
        SchedulerJobContext(
            job_name=manual_name,
            scheduled_time="manual",
            execution_time=_utc_timestamp(),
        ),
    )


def _is_non_empty_str(value: object) -> bool:
    return isinstance(value, str) and bool(value)


def validate_job_configuration(job_config: Mapping[str, object]) -> JobConfigValidation:
    """Structural checks only; cron field ranges are not validated."""
    errors: list[str] = []
    name = job_config.get("name")
    cron = job_config.get("cron")
    endpoint = job_config.get("endpoint")

    if not _is_non_empty_str(name):
        errors.append("Job name is required and must be a string")

    if not _is_non_empty_str(cron):
        errors.append("Cron expression is required and must be a string")
    elif len(str(cron).split()) != CRON_FIELD_COUNT:
        errors.append("Cron expression must have exactly 5 parts (minute hour day month weekday)")

    if not _is_non_empty_str(endpoint):
        errors.append("Endpoint is required and must be a string")
    elif not str(endpoint).startswith("/"):
        errors.append('Endpoint must start with "/"')

    return JobConfigValidation(is_valid=not errors, errors=errors)


def _describe_weekday(weekday: str) -> str:
    if weekday.isdigit() and int(weekday) < len(WEEKDAY_NAMES):
        return WEEKDAY_NAMES[int(weekday)]
    return f"weekday {weekday}"


def describe_cron_expression(cron: str) -> str:
    """Human-readable rendering of a five-field cron, for display only."""
    parts = cron.split() if isinstance(cron, str) else []
    if len(parts) != CRON_FIELD_COUNT:
        return INVALID_CRON_DESCRIPTION

    normalized = " ".join(parts)
    if normalized in KNOWN_CRON_DESCRIPTIONS:
        return KNOWN_CRON_DESCRIPTIONS[normalized]

    minute, hour, day, _month, weekday = parts
    if minute == "0" and hour != "*":
        description = f"Runs at {hour}:00"
    elif minute != "*" and hour != "*":
        description = f"Runs at {hour}:{minute}"
    else:
        description = "Runs at specified times"

    if day != "*":
        description += f" on day {day} of the month"
    elif weekday != "*":
        description += f" on {_describe_weekday(weekday)}"
    else:
        description += " daily"

    return f"{description} (UTC)"


def _as_utc(moment: datetime) -> datetime:
    # Naive datetimes are taken to be UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def create_scheduler_health_check(
    job_name: str,
    last_execution: datetime | None = None,
    next_execution: datetime | None = None,
    last_result: SchedulerJobResult | None = None,
    *,
    now_utc: datetime | None = None,
) -> SchedulerHealthCheck:
    now = _as_utc(now_utc) if now_utc is not None else datetime.now(timezone.utc)
    if last_execution is not None:
        last_execution = _as_utc(last_execution)

    if last_execution is None:
        status, message = SchedulerHealthStatus.WARNING, "Job has never executed"
    elif now - last_execution > STALE_EXECUTION_THRESHOLD:
        status, message = SchedulerHealthStatus.ERROR, "Job has not executed in over 25 hours"
    elif last_result is not None and not last_result.success:
        status, message = SchedulerHealthStatus.ERROR, f"Last execution failed: {last_result.error}"
    else:
        status, message = SchedulerHealthStatus.HEALTHY, "Job is running normally"

    return SchedulerHealthCheck(
        job_name=job_name,
        status=status,
        message=message,
        last_execution=last_execution.isoformat() if last_execution else None,
        next_execution=next_execution.isoformat() if next_execution else None,
    )
