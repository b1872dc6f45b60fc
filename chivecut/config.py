"""Application configuration via environment variables."""

import logging
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Queue / result store
    queue_backend: str = "memory"  # "memory" or "redis"
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "analysis"
    job_ttl_seconds: int = 3600

    # Worker
    queue_pop_timeout_seconds: int = 5
    worker_backoff_seconds: float = 2.0
    visibility_timeout_seconds: int = 300
    reaper_interval_seconds: float = 30.0

    # Result polling
    poll_interval_seconds: float = 2.0
    poll_max_attempts: int = 60

    # xAI (Grok) vision analysis
    xai_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("XAI_API_KEY", "XAIAPIKEY")
    )
    xai_base_url: str = "https://api.x.ai/v1"
    xai_model: str = "grok-4-fast"
    analysis_timeout_seconds: float = 60.0

    # Media storage
    media_backend: str = "local"  # "local" or "supabase"
    media_dir: Optional[str] = None
    media_ttl_hours: int = 2
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_bucket: str = "chive-uploads"

    # Uploads
    max_upload_bytes: int = 20 * 1024 * 1024

    api_port: int = 8001
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    def job_key(self, job_id: str) -> str:
        return f"{self.key_prefix}:jobs:{job_id}"

    def result_key(self, job_id: str) -> str:
        return f"{self.key_prefix}:results:{job_id}"

    @property
    def queue_key(self) -> str:
        return f"{self.key_prefix}:queue"


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging once per process (API lifespan or worker CLI)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings()
