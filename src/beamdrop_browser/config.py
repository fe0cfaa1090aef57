# Settings for the beamdrop browser.
# Created: 2026-10-02
#
# Values come from BEAMDROP_* environment variables (or a local .env file).
# Nothing in the engine reads settings implicitly: the CLI resolves them and
# passes a client plus a SessionContext into BrowserSession.

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_CONFIG_DIR_NAME = ".beamdrop-browser"


class Settings(BaseSettings):
    """Client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BEAMDROP_",
        env_file=".env",
        extra="ignore",
    )

    server_url: str = Field(
        default="http://localhost:7777", description="Base URL of the beamdrop server"
    )
    password: str | None = Field(default=None, description="Server password, if enabled")
    request_timeout: float = Field(default=15.0, description="Timeout for regular requests")
    upload_timeout: float = Field(default=120.0, description="Timeout for uploads and downloads")
    show_hidden_files: bool = Field(default=False, description="Show dot-files in listings")
    default_sort_field: Literal["name", "size", "modTime"] = "name"
    default_sort_order: Literal["asc", "desc"] = "asc"
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()


def get_config_dir() -> Path:
    """Get/create ~/.beamdrop-browser."""
    d = Path.home() / _CONFIG_DIR_NAME
    d.mkdir(parents=True, exist_ok=True)
    return d
