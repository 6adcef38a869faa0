from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/jobfinder.db"
    secret_key: str = "dev-secret-key-change-in-production"
    jwt_expire_days: int = 7
    log_level: str = "INFO"

    cors_origins: list[str] = ["http://localhost:3000"]

    # Redis configuration (rate limiting)
    redis_url: str = "redis://localhost:6379"
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_max_requests: int = 100

    # Celery configuration
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/0"

    # Brevo (email + SMS)
    brevo_api_key: str = ""
    brevo_sender_email: str = "alerts@jobfinder.local"
    brevo_sender_name: str = "Job Finder"

    # Shared secret for the N8N webhooks (disabled when empty)
    n8n_api_key: str = ""

    # Duplicate detection
    duplicate_similarity_threshold: float = 0.85

    # Data retention
    job_match_retention_days: int = 90
    archive_before_delete_days: int = 30
    retention_batch_size: int = 1000
    enable_archiving: bool = True
    retention_hour: int = 2

    alert_dispatch_interval_minutes: int = 15
    alert_digest_hour: int = 8

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
