"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FETCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_agent: str | None = Field(default=None)
    timeout_seconds: float | None = Field(default=None)
    max_response_size_bytes: int | None = Field(default=None)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
