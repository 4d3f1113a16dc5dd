"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    descriptor_dimension: int = 128
    match_threshold: float = 0.4
    high_confidence_cutoff: float = 0.8
    match_strategy: Literal["exact", "early_exit"] = "exact"
    registration_sample_count: int = 5
    extractor_backend: Literal["http", "simulated"] = "http"
    extractor_url: str = "http://localhost:8001"
    extractor_timeout_seconds: float = 10.0
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3
    snapshot_ttl_seconds: int = 30
    archive_enabled: bool = True
    archive_bucket: str = "face-images"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
