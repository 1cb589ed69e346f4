"""Runtime settings for gensync components.

Settings are loaded from environment variables by default and can be overridden
by explicit values from constructors/CLI flags.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Stays under the 800s execution ceiling of managed serverless functions.
DEFAULT_GENERATION_TIMEOUT = 800.0


class ReconcilerSettings(BaseSettings):
    """Settings for the generation polling loop."""

    model_config = SettingsConfigDict(env_prefix="GENSYNC_RECONCILER_", extra="ignore")

    poll_interval: float = Field(default=0.5, description="Seconds")
    timeout: float = Field(default=DEFAULT_GENERATION_TIMEOUT, description="Seconds")

    @field_validator("poll_interval", "timeout")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value


class WaitSettings(BaseSettings):
    """Settings for one-shot status waits used by forced status updates."""

    model_config = SettingsConfigDict(env_prefix="GENSYNC_WAIT_", extra="ignore")

    interval: float = Field(default=1.0, description="Seconds")
    timeout: float = Field(default=60.0, description="Seconds")

    @field_validator("interval", "timeout")
    @classmethod
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value


class EngineSettings(BaseSettings):
    """Settings for the HTTP engine client."""

    model_config = SettingsConfigDict(env_prefix="GENSYNC_ENGINE_", extra="ignore")

    base_url: str = "http://localhost:3000/api/giselle"
    request_timeout: float = Field(default=30.0, description="Seconds")
    max_attempts: int = 3
    retry_initial_delay: float = Field(default=0.2, description="Seconds")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout must be positive")
        return value

    @field_validator("max_attempts")
    @classmethod
    def validate_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_attempts must be >= 1")
        return value
