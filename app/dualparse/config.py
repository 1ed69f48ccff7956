"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (the only credential the service needs)
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"

    # Local clean-up of model transactions (dates, amounts, currency codes)
    normalize_transactions: bool = False

    # Reference pricing in USD per 1M tokens, used for the cost estimate only
    input_token_rate: float = 0.075
    output_token_rate: float = 0.30

    # Debug flags
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
