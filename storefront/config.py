"""
Settings — loaded from the environment (prefix STOREFRONT_) and .env.

    from storefront.config import Settings

    settings = Settings()              # env + defaults
    settings = Settings(backend="sqlalchemy", database_url="sqlite+aiosqlite:///./db.sqlite")
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
    )

    # Application
    app_name: str = "storefront"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Storage backend
    backend: Literal["memory", "sqlalchemy", "mongo"] = "memory"
    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "storefront"

    # Listing
    default_page_limit: int = Field(default=10, ge=1)
    max_page_limit: int = Field(default=100, ge=1)

    # Category tree
    tree_max_levels: int = Field(default=64, ge=1)


__all__ = ("Settings",)
