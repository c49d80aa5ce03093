from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.routes import health as health_routes
from app.main import app
from app.workers.scheduler import SchedulerJobResult
from app.workers.scheduler_state import record_last_run
from tests.redis_fakes import FakeRedis


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


def test_health_ok(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
        },
    }


def test_live_ok() -> None:
    client = TestClient(app)
    response = client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "live"}


def test_health_returns_503_when_dependency_failed(monkeypatch) -> None:
    async def _failed_redis() -> dict[str, str]:
        return {"status": "failed", "error": "redis_unavailable"}

    monkeypatch.setattr(health_routes, "_check_redis", _failed_redis)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _ok_check)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["redis"] == {"status": "failed", "error": "redis_unavailable"}


def test_ready_ignores_celery(monkeypatch) -> None:
    async def _failed_celery() -> dict[str, str]:
        return {"status": "failed", "error": "worker not responding"}

    monkeypatch.setattr(health_routes, "_check_redis", _ok_check)
    monkeypatch.setattr(health_routes, "_check_celery_worker", _failed_celery)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"redis": {"status": "ok"}}}


@pytest.mark.asyncio
async def test_redis_check_sanitizes_exception(monkeypatch) -> None:
    def _broken_client():
        raise RuntimeError("redis://:secret@cache:6379")

    monkeypatch.setattr(health_routes, "build_redis_client", _broken_client)

    result = await health_routes._check_redis()
    assert result == {"status": "failed", "error": "redis_unavailable"}


def test_celery_check_sanitizes_exception(monkeypatch) -> None:
    class _BrokenControl:
        def inspect(self, timeout: float):
            raise RuntimeError("broker-url=redis://secret")

    monkeypatch.setattr(health_routes.celery_app, "control", _BrokenControl())

    result = health_routes._check_celery_worker_sync()
    assert result == {"status": "failed", "error": "celery_unavailable"}


def test_scheduler_health_warns_before_first_run(monkeypatch) -> None:
    monkeypatch.setattr(health_routes, "build_redis_client", lambda: FakeRedis())

    client = TestClient(app)
    response = client.get("/health/scheduler")

    assert response.status_code == 200
    job = response.json()["jobs"]["daily-reset"]
    assert job["status"] == "warning"
    assert job["message"] == "Job has never executed"
    assert job["schedule"] == "Daily at midnight (00:00 UTC)"


@pytest.mark.asyncio
async def test_scheduler_health_reports_failed_last_run(monkeypatch) -> None:
    redis = FakeRedis()
    now_utc = datetime.now(timezone.utc)
    await record_last_run(
        redis,
        job_name="daily-reset",
        executed_at=now_utc - timedelta(hours=1),
        result=SchedulerJobResult(success=False, message="Job failed after 2ms", timestamp=now_utc.isoformat(), error="boom"),
    )
    monkeypatch.setattr(health_routes, "build_redis_client", lambda: redis)

    check = await health_routes._check_daily_reset_job()

    assert check["status"] == "error"
    assert check["message"] == "Last execution failed: boom"
