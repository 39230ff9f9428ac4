"""Configuration via pydantic-settings (12-factor app style)."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """combparse configuration, loaded from env vars / .env file."""

    log_level: str = Field(default="WARNING", description="Root logging level for the CLI")
    default_format: str = Field(default="auto", description="Grammar used when none is given (auto|json|nginx)")
    on_error: str = Field(default="skip", description="Batch policy for unparseable lines (skip|abort)")
    max_workers: int = Field(default=4, description="Worker processes for parallel line parsing")
    table_max_rows: int = Field(default=100, description="Row cap for rich table output")

    class Config:
        env_prefix = "COMBPARSE_"
        env_file = ".env"


settings = Settings()
