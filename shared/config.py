"""
Configuration management.

Centralized environment variable management and validation.
"""

from typing import Literal
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from shared.errors import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow case-insensitive env var matching
        extra="ignore"
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = "development"

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Generation provider (Kie AI unified task API)
    kie_ai_api_key: str = ""
    kie_ai_base_url: str = "https://api.kie.ai/api/v1"

    # Storyboard LLM
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000

    # Public base URL used to build asset and download links
    render_base_url: str = "http://localhost:3000"

    # Local storage
    assets_dir: str = "assets"
    output_dir: str = "output"

    # Compositor
    remotion_entry_point: str = "src/remotion/index.ts"
    composition_id: str = "KatboxVideo"

    # Provider task polling (seconds)
    poll_initial_interval: float = 10.0
    poll_max_interval: float = 60.0
    poll_backoff_multiplier: float = 2.0
    poll_max_attempts: int = 30

    # Storyboard duration rules
    storyboard_target_seconds: int = 60
    scene_min_seconds: int = 3
    scene_max_seconds: int = 15

    # Job retention
    job_max_age_seconds: int = 24 * 60 * 60
    job_sweep_interval_seconds: int = 60 * 60

    @field_validator("kie_ai_base_url", "render_base_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate HTTP/HTTPS URL format."""
        if not v.startswith(("http://", "https://")):
            raise ConfigError(f"{v!r} must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @field_validator(
        "poll_initial_interval",
        "poll_max_interval",
        "job_max_age_seconds",
        "job_sweep_interval_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Intervals and ages must be positive."""
        if v <= 0:
            raise ConfigError(f"Expected a positive value, got {v}")
        return v

    @field_validator("poll_backoff_multiplier")
    @classmethod
    def validate_multiplier(cls, v: float) -> float:
        if v < 1:
            raise ConfigError("POLL_BACKOFF_MULTIPLIER must be at least 1")
        return v

    @field_validator("poll_max_attempts")
    @classmethod
    def validate_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ConfigError("POLL_MAX_ATTEMPTS must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_scene_bounds(self) -> "Settings":
        """Scene bounds must be ordered and fit the target duration."""
        if self.scene_min_seconds <= 0:
            raise ConfigError("SCENE_MIN_SECONDS must be positive")
        if self.scene_min_seconds > self.scene_max_seconds:
            raise ConfigError("SCENE_MIN_SECONDS must not exceed SCENE_MAX_SECONDS")
        if self.storyboard_target_seconds < self.scene_min_seconds:
            raise ConfigError("STORYBOARD_TARGET_SECONDS is shorter than a single scene")
        if self.poll_initial_interval > self.poll_max_interval:
            raise ConfigError("POLL_INITIAL_INTERVAL must not exceed POLL_MAX_INTERVAL")
        return self


# Singleton instance
try:
    settings = Settings()
except Exception as e:
    # Re-raise as ConfigError for consistency
    if isinstance(e, ConfigError):
        raise
    raise ConfigError(f"Failed to load configuration: {str(e)}") from e
