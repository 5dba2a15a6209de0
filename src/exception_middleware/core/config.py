"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Exception Middleware"
    app_version: str = "0.1.0"
    environment: Literal["development", "testing", "staging", "production"] = "development"
    log_level: str = "INFO"

    # Error reporting
    error_content_type: str = "application/xml; charset=utf-8"
    max_cause_depth: int = Field(default=64, ge=1, description="Upper bound on cause-chain traversal")
    include_stack_trace: bool = True

    # Expose uppercase aliases for compatibility
    @property
    def APP_NAME(self) -> str:
        """Get app name (uppercase alias)."""
        return self.app_name

    @property
    def APP_VERSION(self) -> str:
        """Get app version (uppercase alias)."""
        return self.app_version

    @property
    def ENVIRONMENT(self) -> str:
        """Get environment (uppercase alias)."""
        return self.environment

    @property
    def LOG_LEVEL(self) -> str:
        """Get log level (uppercase alias)."""
        return self.log_level

    @property
    def ERROR_CONTENT_TYPE(self) -> str:
        """Get error body content type (uppercase alias)."""
        return self.error_content_type


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
