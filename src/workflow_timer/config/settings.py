"""Configuration and settings management using pydantic-settings."""
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_TIMER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    # Run settings
    clock: Literal["real", "simulated"] = Field(
        default="real",
        description="Default clock: wall-clock timers or instant virtual time",
    )
    time_scale: float = Field(
        default=1.0,
        description="Multiplier applied to edge delays on the real clock",
    )

    @field_validator("time_scale")
    @classmethod
    def validate_time_scale(cls, v: float) -> float:
        """Validate that time scale is positive."""
        if v <= 0:
            raise ValueError("time_scale must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
