from functools import lru_cache
from typing import Optional

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")


def _env_bool(var_name: str, default: bool = False) -> bool:
    """Return boolean interpretation of an environment variable."""
    value = os.getenv(var_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "on"}


def _env_int(var_name: str, default: int) -> int:
    """Parse integer environment variables safely."""
    value = os.getenv(var_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(var_name: str, default: float) -> float:
    """Parse float environment variables safely."""
    value = os.getenv(var_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


class Settings(BaseModel):
    """Provider configuration loaded from environment variables."""

    app_name: str = Field(default="Lex Resource Provider")
    version: str = Field(default="0.1.0")
    environment: str = Field(default_factory=lambda: os.getenv("APP_ENV", "local"))

    aws_region: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
    )
    aws_profile: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_PROFILE")
    )
    lex_endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("LEX_ENDPOINT_URL"),
        description="Override for the Lex model-building endpoint (local stacks, VPC endpoints).",
    )
    lex_max_attempts: int = Field(
        default_factory=lambda: _env_int("LEX_MAX_ATTEMPTS", 3),
        description="botocore standard-mode attempts for throttling and transport errors.",
    )
    lex_update_timeout: float = Field(
        default_factory=lambda: _env_float("LEX_UPDATE_TIMEOUT", 60.0),
        description="Seconds to keep retrying an update while the remote reports a conflict.",
    )
    lex_delete_timeout: float = Field(
        default_factory=lambda: _env_float("LEX_DELETE_TIMEOUT", 300.0),
        description="Seconds to keep retrying a delete and waiting for the resource to disappear.",
    )
    lex_retry_base_delay: float = Field(
        default_factory=lambda: _env_float("LEX_RETRY_BASE_DELAY", 0.5),
        description="Base backoff delay (seconds) between conflict retries.",
    )
    lex_retry_max_delay: float = Field(
        default_factory=lambda: _env_float("LEX_RETRY_MAX_DELAY", 8.0),
        description="Maximum backoff delay (seconds) between conflict retries.",
    )

    log_level: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"),
        description="Root logger level.",
    )
    log_json: bool = Field(
        default_factory=lambda: _env_bool("LOG_JSON", False),
        description="Toggle JSON log formatting.",
    )
    request_id_header: str = Field(
        default_factory=lambda: os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
        description="HTTP header carrying correlation IDs.",
    )
    log_file_path: Optional[str] = Field(
        default_factory=lambda: os.getenv("LOG_FILE_PATH"),
        description="Path to the rotating log file; file logging is off when unset.",
    )
    log_file_max_bytes: int = Field(
        default_factory=lambda: _env_int("LOG_FILE_MAX_BYTES", 5 * 1024 * 1024),
        description="Maximum size in bytes before the log file rotates.",
    )
    log_file_backup_count: int = Field(
        default_factory=lambda: _env_int("LOG_FILE_BACKUP_COUNT", 5),
        description="Number of rotated log files to retain.",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


settings = get_settings()
