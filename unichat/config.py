"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from unichat.kernel.errors import GatewayMisconfiguredError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "test", "production"] = Field(default="development")

    # Messaging gateway (Evolution API v2)
    wpp_api_base_url: str | None = Field(default=None)
    wpp_api_key: str | None = Field(default=None)
    gateway_timeout_seconds: float = Field(default=30.0)
    # Page size sent to findMessages
    message_page_offset: int = Field(default=100)

    # API Settings
    cors_origins: list[str] = Field(default=["http://localhost:5173", "http://localhost:3000"])

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    def require_gateway(self) -> tuple[str, str]:
        """
        Return the gateway base URL (no trailing slash) and API key.

        Raises GatewayMisconfiguredError when either is missing.
        """
        if not self.wpp_api_base_url or not self.wpp_api_key:
            raise GatewayMisconfiguredError()
        return self.wpp_api_base_url.rstrip("/"), self.wpp_api_key


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
