from app.workers.tasks.daily_reset import run_daily_reset

__all__ = [
    "run_daily_reset",
]
