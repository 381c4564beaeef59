"""Engine configuration management using Pydantic Settings."""

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_ITERATION_GUARD = 500


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application Environment
    app_env: str = Field(default="development", alias="APP_ENV")

    # Logging Configuration
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Recurrence Configuration
    recurrence_iteration_guard: int = Field(
        default=MIN_ITERATION_GUARD, alias="RECURRENCE_ITERATION_GUARD"
    )
    materialize_iteration_guard: int = Field(
        default=2000, alias="MATERIALIZE_ITERATION_GUARD"
    )

    # Money Configuration
    minor_unit_decimals: int = Field(
        default=2, ge=0, le=6, alias="MINOR_UNIT_DECIMALS"
    )
    split_percent_tolerance: float = Field(
        default=0.01, ge=0, alias="SPLIT_PERCENT_TOLERANCE"
    )

    # Reporting Defaults
    default_trend_months: int = Field(default=12, ge=1, alias="DEFAULT_TREND_MONTHS")
    default_upcoming_days: int = Field(
        default=30, ge=0, alias="DEFAULT_UPCOMING_DAYS"
    )
    default_top_n: int = Field(default=5, ge=0, alias="DEFAULT_TOP_N")

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v):
        """Validate application environment."""
        allowed_envs = {"development", "testing", "production"}
        if v not in allowed_envs:
            raise ValueError(f"APP_ENV must be one of {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("recurrence_iteration_guard", "materialize_iteration_guard")
    @classmethod
    def validate_iteration_guard(cls, v):
        """Iteration guards may be raised but never lowered below the floor."""
        if v < MIN_ITERATION_GUARD:
            raise ValueError(
                f"Iteration guard must be at least {MIN_ITERATION_GUARD}, got {v}"
            )
        return v

    @property
    def minor_unit(self) -> float:
        """Smallest currency unit, e.g. 0.01 for two decimals."""
        return 10 ** -self.minor_unit_decimals


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Get engine settings instance."""
    if env_file is not None:
        return Settings(_env_file=env_file)
    return Settings()


# Global settings instance - created lazily on first access
_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Reset global settings instance (useful for testing)."""
    global _settings
    _settings = None


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Apply the configured log level to the package logger."""
    settings = settings or get_global_settings()
    package_logger = logging.getLogger("financify")
    package_logger.setLevel(settings.log_level)
    return package_logger
