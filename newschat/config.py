"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from newschat.config import get_settings

    settings = get_settings()
    print(settings.api.base_url)
    print(settings.storage.path)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Remote chat/article service configuration."""

    base_url: str = Field(
        default="http://localhost:3001/api",
        description="Base URL of the RAG news chat backend (including the /api prefix)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Request timeout in seconds",
    )
    history_limit: int = Field(
        default=50,
        gt=0,
        le=500,
        description="Number of messages requested when loading a session's history",
    )

    model_config = SettingsConfigDict(
        env_prefix="NEWSCHAT_API_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        parsed = urlparse(v)
        if parsed.scheme not in {"http", "https"}:
            raise ValueError("NEWSCHAT_API_BASE_URL must use http or https scheme.")
        if not parsed.hostname:
            raise ValueError("NEWSCHAT_API_BASE_URL must include a host.")
        return v.rstrip("/")


class StorageSettings(BaseSettings):
    """Local persisted key-value store configuration."""

    path: Path = Field(
        default=Path.home() / ".newschat" / "storage.json",
        description="JSON file backing the persisted key-value store",
    )
    session_key: str = Field(
        default="newschat_session",
        min_length=1,
        description="Key holding the serialized current session",
    )
    history_key: str = Field(
        default="newschat_history",
        min_length=1,
        description="Key holding the serialized cached transcript",
    )

    model_config = SettingsConfigDict(
        env_prefix="NEWSCHAT_STORAGE_",
        env_file=".env",
        extra="ignore",
    )


class CacheSettings(BaseSettings):
    """Freshness windows for locally cached state."""

    history_ttl_seconds: int = Field(
        default=3600,
        gt=0,
        description="Cached transcripts older than this are treated as absent",
    )
    session_validity_hours: int = Field(
        default=24,
        gt=0,
        description="Sessions idle for longer than this are reported as expired",
    )
    search_debounce_ms: int = Field(
        default=300,
        ge=0,
        le=5000,
        description="Delay used to coalesce rapid article search input",
    )

    model_config = SettingsConfigDict(
        env_prefix="NEWSCHAT_CACHE_",
        env_file=".env",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,  # Override any existing configuration
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (api, storage, cache, logging).

    Environment Variables:
        NEWSCHAT_API_*: Remote service configuration (see ApiSettings)
        NEWSCHAT_STORAGE_*: Local store configuration (see StorageSettings)
        NEWSCHAT_CACHE_*: Cache freshness configuration (see CacheSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.api.base_url
        'http://localhost:3001/api'
        >>> settings.cache.history_ttl_seconds
        3600
    """

    # Nested settings
    api: ApiSettings = Field(default_factory=ApiSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            "Settings loaded",
            extra={
                "api_base_url": self.api.base_url,
                "storage_path": str(self.storage.path),
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("NEWSCHAT_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Singleton settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
