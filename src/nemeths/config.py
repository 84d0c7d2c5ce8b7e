"""Lightweight configuration for the Nemeths tools."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings read from ``NEMETHS_*`` variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="NEMETHS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: Path = Field(default=Path("results"), description="Where stored results live")
    default_seed: int = Field(default=12345, description="Seed used when a request omits one")
    default_generations: int = Field(
        default=100, ge=1, description="Generations per batch when none are requested"
    )
    workers: int = Field(default=1, ge=0, description="Worker processes for batch runs")
    log_level: str = Field(default="INFO", description="Root log level for the CLI and API")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
