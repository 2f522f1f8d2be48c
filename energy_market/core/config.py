"""
Application configuration loaded from environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Literal

from energy_market.core.constants import DEFAULT_LIMIT


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file = ".env",
        env_file_encoding = "utf-8",
        populate_by_name = True,
        extra = "ignore"
    )
    
    # Storage
    storage_backend: Literal["memory", "sql"] = Field(default="memory", alias="STORAGE_BACKEND")
    database_url: str = Field(default="sqlite+aiosqlite:///./energy_market.db", alias="DATABASE_URL")
    
    # Auth
    secret_key: str = Field(default="dev-secret-change-me", alias="SECRET_KEY")
    password_hash_iterations: int = Field(default=260_000, alias="PASSWORD_HASH_ITERATIONS", ge=1)
    
    # Application
    app_name: str = Field(default="P2P Energy Marketplace", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    port: int = Field(default=5000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    default_page_limit: int = Field(default=DEFAULT_LIMIT, alias="DEFAULT_PAGE_LIMIT", ge=1)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
