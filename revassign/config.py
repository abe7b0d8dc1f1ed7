"""Configuration loading from YAML and environment.

Every section is a pydantic-settings model, so values missing from the YAML
file are taken from environment variables (DATABASE_*, SERVER_*, LOGGING_*)
before falling back to defaults.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Injected by load_config so ${VAR} substitution sees a consistent snapshot
_current_env: dict[str, str] = {}


class DatabaseConfig(BaseSettings):
    """SQLite database settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")

    path: str = Field(default="revassign.db", description="SQLite file path or :memory:")
    connect_retries: int = Field(default=30, ge=1, description="Connection attempts at startup")
    retry_delay_seconds: float = Field(default=2.0, ge=0, description="Pause between connection attempts")
    busy_timeout_seconds: float = Field(default=5.0, ge=0, description="How long to wait on a locked database")


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="SERVER_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8080, ge=0, le=65535, description="Bind port (0 picks a free port)")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    access_log: bool = Field(default=False, description="Write one INFO line per HTTP request")


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with environment values."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    DATABASE_PATH always wins over the file so containers can point the
    service at a mounted volume.
    """
    global _current_env

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    database_raw = raw.get("database") or {}
    if _current_env.get("DATABASE_PATH"):
        database_raw = {**database_raw, "path": _current_env.get("DATABASE_PATH")}

    return AppConfig(
        database=DatabaseConfig(**database_raw),
        server=ServerConfig(**(raw.get("server") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
