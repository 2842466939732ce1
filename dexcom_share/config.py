"""Client configuration using Pydantic Settings."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexcom_share.core.constants import DEFAULT_SESSION_TTL_SECONDS, Region


class Settings(BaseSettings):
    """Client settings loaded from environment variables (or ``.env``)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credentials (only used by Dexcom.from_settings)
    dexcom_username: str | None = None
    dexcom_account_id: str | None = None
    dexcom_password: str | None = None
    dexcom_region: Region = Region.US

    # Session
    dexcom_session_ttl_seconds: float = Field(
        default=DEFAULT_SESSION_TTL_SECONDS,
        ge=0,
        description="How long a session id is reused before re-authenticating.",
    )
    dexcom_http_timeout_seconds: float = Field(default=10.0, gt=0)

    # Transport retries
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay_seconds: float = Field(default=0.2, ge=0)
    retry_max_delay_seconds: float = Field(default=4.0, ge=0)
    retry_jitter: bool = True

    # Session cache
    session_cache_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    session_cache_key: str = "dexcom:session"
    session_cache_timeout_seconds: float = Field(default=2.0, gt=0)

    # Logging
    log_format: str = "text"  # 'json' or 'text'
    log_level: str = "INFO"
    service_name: str = "dexcom-share"


settings = Settings()
