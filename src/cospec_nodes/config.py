"""Configuration management for coSPEC nodes."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cospec_nodes.errors import ApiKeyNotConfiguredError

DEFAULT_BASE_URL = "https://api.cospec.io"


class CospecSettings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="COSPEC_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_key: str | None = Field(None, description="coSPEC API key (csk_live_...)")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Override for self-hosted deployments")
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for one HTTP request")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")


@dataclass(frozen=True)
class CospecCredentials:
    """Stored credentials for the coSPEC API."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL

    def __repr__(self) -> str:
        return f"CospecCredentials(api_key='***', base_url={self.base_url!r})"

    @classmethod
    def from_settings(cls, settings: CospecSettings) -> CospecCredentials:
        api_key = (settings.api_key or "").strip()
        if not api_key:
            raise ApiKeyNotConfiguredError("coSPEC API key is not configured, set COSPEC_API_KEY")
        return cls(api_key=api_key, base_url=settings.base_url.strip() or DEFAULT_BASE_URL)


def get_settings() -> CospecSettings:
    """Load settings from environment variables and the optional .env file."""
    return CospecSettings()
