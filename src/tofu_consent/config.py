"""Configuration and environment loading for TOFU Consent."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage
    store_backend: Literal["memory", "supabase"] = "memory"

    # Supabase
    supabase_url: str | None = None
    supabase_key: str | None = None

    # Key-protected routes are disabled while their key is unset
    admin_api_key: str | None = None
    protocol_api_key: str | None = None

    # Seed for the in-memory client registry: {"client-id": ["openid", "profile"]}
    registered_clients: dict[str, list[str]] = Field(default_factory=dict)

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
