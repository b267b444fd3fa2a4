"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

API_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=4000, validation_alias=AliasChoices("PORT", "API_PORT"))
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    max_request_body_mb: int = 50  # Embedded chart/circuit images are large

    # Report rendering
    report_page_size: Literal["A4", "LETTER"] = "A4"
    report_margin: float = 50.0
    report_compress: bool = True
    report_thank_you_page: bool = False
    report_footer_text: str = "Auto-generated by BEEE Lab Report Generator"

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"

    @property
    def max_request_body_bytes(self) -> int:
        return self.max_request_body_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
