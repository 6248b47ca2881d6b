from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300

    REDIS_URL: str = "redis://localhost:6379/0"
    KEY_PREFIX: str = "maint:"

    LOG_LEVEL: str = "INFO"

    CRON_HOUR: int = 3
    CRON_TIMEZONE: str = "UTC"

    HOST_EXECUTION_CEILING_SECONDS: int = 0
    CONTINUATION_DELAY_SECONDS: int = 60
    LOCK_GRACE_SECONDS: int = 120

    AUTHOR_DEMOTION_ENABLED: bool = True
    AUTHOR_DEMOTION_BATCH_SIZE: int = 100
    AUTHOR_DEMOTION_MAX_RUNTIME_SECONDS: int = 45
    AUTHOR_DEMOTION_OFFSET_MINUTES: int = 0

    STORY_STATUS_ENABLED: bool = True
    STORY_STATUS_BATCH_SIZE: int = 200
    STORY_STATUS_MAX_RUNTIME_SECONDS: int = 45
    STORY_STATUS_OFFSET_MINUTES: int = 10
    STORY_HIATUS_THRESHOLD_VALUE: int = 4
    STORY_HIATUS_THRESHOLD_UNIT: Literal["days", "weeks", "months"] = "months"
    STORY_ABANDONED_THRESHOLD_VALUE: int = 10
    STORY_ABANDONED_THRESHOLD_UNIT: Literal["days", "weeks", "months"] = "months"

    FEATURED_MODE: Literal["manual", "automatic", "both"] = "manual"
    FEATURED_MAX_COUNT: int = 6
    FEATURED_OFFSET_MINUTES: int = 20
    FEATURED_COMMENTS_ENABLED: bool = True
    FEATURED_LIKES_ENABLED: bool = True

    VOTE_ANONYMIZATION_ENABLED: bool = True
    VOTE_ANONYMIZATION_BATCH_SIZE: int = 400
    VOTE_ANONYMIZATION_MAX_RUNTIME_SECONDS: int = 45
    VOTE_ANONYMIZATION_OFFSET_MINUTES: int = 50
    VOTE_ANONYMIZATION_RETENTION_DAYS: int = 30

    MEDIA_CLEANUP_ENABLED: bool = True
    MEDIA_CLEANUP_BATCH_SIZE: int = 200
    MEDIA_CLEANUP_MAX_RUNTIME_SECONDS: int = 45
    MEDIA_CLEANUP_OFFSET_MINUTES: int = 20

    EMAIL_BATCH_SIZE: int = 50
    EMAIL_MAX_ATTEMPTS: int = 3
    EMAIL_BACKOFF_BASE_SECONDS: int = 1800
    EMAIL_SWEEP_INTERVAL_SECONDS: int = 1800
    EMAIL_LOG_LIMIT: int = 1000

    DISPATCH_CHUNK_SIZE: int = 50
    DISPATCH_CHUNK_DELAY_SECONDS: int = 60

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_START_TLS: bool = False
    SMTP_TIMEOUT_SECONDS: float = 30.0
    MAIL_FROM: str = "noreply@localhost"

    SITE_NAME: str = "Fanfiction"
    SITE_URL: str = "http://localhost"

    SCHEDULER_POLL_INTERVAL: float = 1.0
    SCHEDULER_BATCH_SIZE: int = 20

    CONTENT_EVENTS_STREAM: str = "content.events"
    CONTENT_EVENTS_GROUP: str = "maintenance-service"
    CONTENT_EVENTS_CONSUMER: str | None = None
    CONTENT_EVENTS_MAX_DELIVERIES: int = 5

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
