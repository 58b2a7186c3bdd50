"""Configuration settings for match-score."""

from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings have sensible defaults and can be overridden via
    environment variables or a .env file. Scoring knobs live in
    ``ScoringConfig`` (``SCORING_`` prefix); this class only holds what the
    storage and reporting side needs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Paths
    database_path: Path = Field(
        default=Path("./data/matchscore.db"),
        description="Path to the SQLite database holding match results and outcomes",
    )

    # Calibration reporting
    calibration_buckets: Annotated[int, Field(ge=2, le=100)] = Field(
        default=10,
        description="Number of equal-width probability buckets (10 = deciles)",
    )
    calibration_tolerance: Annotated[float, Field(ge=0.0, le=100.0)] = Field(
        default=15.0,
        description=(
            "Percentage-point gap between predicted and observed hire rate "
            "above which a bucket counts as over/under-confident"
        ),
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a known level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


# Singleton instance for easy import
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the settings singleton (useful for testing)."""
    global _settings
    _settings = None
