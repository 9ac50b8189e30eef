"""API configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    title: str = "Clovis Flight Search API"
    version: str = "0.1.0"
    cors_origins: list[str] = ["http://localhost:5173"]

    model_config = SettingsConfigDict(
        env_prefix="CLOVIS_API_", env_file=".env", extra="ignore"
    )


settings = ApiSettings()
