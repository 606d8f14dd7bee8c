"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation.
An optional config.yaml supplies defaults; environment variables win.
"""

import os
import yaml
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/pairlog
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
            return config_data
    return {}


class RateLimitSettings(BaseSettings):
    """Per-caller admission limits for the ingestion endpoint."""

    max: int = Field(default=60, gt=0, description="Requests allowed per caller per window")
    window_seconds: int = Field(default=60, gt=0, description="Rolling window length")

    class Config:
        env_prefix = "RATE_LIMIT_"


class CacheSettings(BaseSettings):
    """Deduplication cache configuration."""

    ttl_ms: int = Field(default=24 * 60 * 60 * 1000, gt=0, description="Entry time-to-live (24h)")
    max: int = Field(default=50000, gt=0, description="Maximum number of remembered keys")

    @property
    def ttl_seconds(self) -> float:
        return self.ttl_ms / 1000.0

    class Config:
        env_prefix = "CACHE_"


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=210, gt=0, description="Server port")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Log renderer: console or json")

    # Storage and ingestion limits
    data_path: Path = Field(default=Path("./dataset.jsonl"), description="Append-only dataset log")
    max_source_len: int = Field(default=1000, gt=0, description="Maximum source_text length")
    max_translated_len: int = Field(default=2000, gt=0, description="Maximum translated_text length")
    max_body_bytes: int = Field(default=1048576, gt=0, description="Maximum request body size (1MB)")

    # Component settings
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Only console and json renderers are supported."""
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v

    class Config:
        env_prefix = ""
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "HOST",
        ("server", "port"): "PORT",
        ("server", "log_level"): "LOG_LEVEL",
        ("server", "log_format"): "LOG_FORMAT",
        ("storage", "data_path"): "DATA_PATH",
        ("ingest", "max_source_len"): "MAX_SOURCE_LEN",
        ("ingest", "max_translated_len"): "MAX_TRANSLATED_LEN",
        ("ingest", "max_body_bytes"): "MAX_BODY_BYTES",
        ("rate_limit", "max"): "RATE_LIMIT_MAX",
        ("rate_limit", "window_seconds"): "RATE_LIMIT_WINDOW_SECONDS",
        ("cache", "ttl_ms"): "CACHE_TTL_MS",
        ("cache", "max"): "CACHE_MAX",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
