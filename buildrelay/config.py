"""Configuration settings for buildrelay.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_out_dir() -> Path:
    """Return the default build output directory."""
    return Path("out")


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the BUILDRELAY_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUILDRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    out_dir: Path = Field(
        default_factory=_default_out_dir,
        description="Root directory for generated build files",
    )

    # Build product
    target_product: str = Field(
        default="generic",
        description="Product being built; part of the ninja file suffix",
    )
    host_prebuilt_tag: str = Field(
        default="linux-x86",
        description="Host tag used to locate prebuilt build tools",
    )

    # Concurrency
    parallel: int = Field(
        default=1,
        ge=1,
        description="Parallelism passed to the translator when goma is used",
    )
    use_goma: bool = Field(
        default=False,
        description="Whether a distributed compiler cache is in use",
    )

    # Output
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    force_terminal: bool | None = Field(
        default=None,
        description="Override terminal detection (unset = detect)",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
