"""Configuration loading and validation.

This module is responsible for:

- Loading `.env` into the process environment (without overriding existing vars).
- Converting environment variables into strongly-typed Pydantic models.
- Validating fields and providing actionable error messages.
"""

import logging
import os
from pathlib import Path
from typing import TypeVar

import dotenv
from pydantic import BaseModel, Field, field_validator

_T = TypeVar("_T", int, float)

DEFAULT_DB_PATH = Path.home() / ".callpad" / "logs.duckdb"


def _get_env_str(name: str, default: str) -> str:
    """Read a string env var with a default (blank counts as unset)."""
    value = os.getenv(name, "").strip()
    return value or default


def _get_env_bool(name: str, default: bool) -> bool:
    """Read a boolean env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    normalized = raw.strip().lower()
    if normalized in {"true", "1", "yes", "y", "on"}:
        return True
    if normalized in {"false", "0", "no", "n", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean (true/false). Got: {raw!r}")


def _get_env_number(name: str, default: _T, cast: type[_T]) -> _T:
    """Read an int/float env var with a default."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a {cast.__name__}. Got: {raw!r}") from exc


class ViewerConfig(BaseModel):
    """Where call records live and how they are exposed."""

    db_path: str = Field(default=str(DEFAULT_DB_PATH), description="DuckDB database file (or ':memory:')")
    log_to_console: bool = Field(default=False, description="Log a summary line for every stored call")
    api_prefix: str = Field(default="", description="Path prefix for the /endpoints and /logs routes")

    @field_validator("db_path")
    def validate_db_path(cls, v: str) -> str:
        """Validate the database path is set."""
        if not v.strip():
            raise ValueError("CALLPAD_DB_PATH must not be empty.")
        return v

    @field_validator("api_prefix")
    def validate_api_prefix(cls, v: str) -> str:
        """Normalize the prefix to '' or '/segment' without a trailing slash."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            raise ValueError(f"CALLPAD_API_PREFIX must start with '/'. Got: {v!r}")
        return v


class ServerConfig(BaseModel):
    """Settings for the demo HTTP server."""

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("port")
    def validate_port(cls, v: int) -> int:
        """Validate the port is in range."""
        if not 0 < v < 65536:
            raise ValueError(f"CALLPAD_PORT must be between 1 and 65535. Got: {v}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate the level is one the logging module knows."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"CALLPAD_LOG_LEVEL must be a logging level name. Got: {v!r}")
        return level


class Config(BaseModel):
    """Top-level application configuration."""

    viewer: ViewerConfig = Field(default_factory=ViewerConfig, description="Call log configuration")
    server: ServerConfig = Field(default_factory=ServerConfig, description="Demo server configuration")


def load_config() -> Config:
    """Load application configuration from environment variables.

    Notes:
    - Calls `dotenv.load_dotenv()` so local `.env` values are visible to the process.
    - Raises `ValueError` with actionable messages when a value cannot be parsed.
    """
    # Load variables from `.env` into the process environment (without overriding
    # already-set env vars).
    dotenv.load_dotenv()

    viewer = ViewerConfig(
        db_path=_get_env_str("CALLPAD_DB_PATH", str(DEFAULT_DB_PATH)),
        log_to_console=_get_env_bool("CALLPAD_LOG_TO_CONSOLE", False),
        api_prefix=_get_env_str("CALLPAD_API_PREFIX", ""),
    )
    server = ServerConfig(
        host=_get_env_str("CALLPAD_HOST", "127.0.0.1"),
        port=_get_env_number("CALLPAD_PORT", 8000, int),
        log_level=_get_env_str("CALLPAD_LOG_LEVEL", "INFO"),
    )
    return Config(viewer=viewer, server=server)
