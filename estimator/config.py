"""
Application configuration using pydantic-settings.

Loads configuration from environment variables with sensible defaults.
Pricing settings (base rate, complexity factors, LLM provider) are domain
data held by the settings store, not environment configuration.
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Storage
    storage_backend: Literal["json", "sql", "memory"] = "json"
    data_dir: Path = Path("./data/estimator")
    database_url: str = "sqlite:///./estimator.db"

    # Application
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # LLM calls
    llm_timeout_seconds: float = 120.0
    llm_max_tokens: int = 4096


@lru_cache
def get_settings() -> AppSettings:
    """Get cached settings instance."""
    return AppSettings()
