from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = Field(default="dev", alias="APP_ENV")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    redis_socket_timeout_seconds: float = Field(default=5.0, alias="REDIS_SOCKET_TIMEOUT_SECONDS")

    session_ttl_seconds: int = Field(default=60 * 60, alias="SESSION_TTL_SECONDS")
    daily_completion_ttl_seconds: int = Field(default=25 * 60 * 60, alias="DAILY_COMPLETION_TTL_SECONDS")
    max_daily_attempts: int = Field(default=2, alias="MAX_DAILY_ATTEMPTS")
    image_manifest_path: str | None = Field(default=None, alias="IMAGE_MANIFEST_PATH")

    celery_broker_url: str = Field(default="redis://localhost:6379/1", alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field(default="redis://localhost:6379/2", alias="CELERY_RESULT_BACKEND")
    daily_reset_cron: str = Field(default="0 0 * * *", alias="DAILY_RESET_CRON")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
