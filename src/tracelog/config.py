# src/tracelog/config.py
"""Configuration schema for the log writer and logger.

Settings are validated by frozen Pydantic models. load_settings() layers
environment variables over an optional YAML file over schema defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Serialized records above this size are offloaded to object storage
STORAGE_LOG_THRESHOLD = 900_000

# Upper bound for one push request body
MAX_CHUNK_BYTES = 5 * 1024 * 1024

# Upload attempts before an attachment or large log is dropped
MAX_UPLOAD_RETRIES = 3


class WriterSettings(BaseModel):
    """Configuration consumed by LogWriter.

    Example:
        settings = WriterSettings(
            base_url="https://collector.example.com",
            api_key="sk-...",
            repository_id="repo-123",
            flush_interval_seconds=5,
        )
    """

    model_config = {"frozen": True}

    base_url: str = Field(description="Collector base URL")
    api_key: str = Field(default="", description="API key sent with every collector call")
    repository_id: str = Field(description="Log repository receiving the records")
    auto_flush: bool = Field(default=True, description="Flush periodically on a background timer")
    flush_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Seconds between periodic flushes",
    )
    max_in_memory_logs: int = Field(
        default=100,
        ge=1,
        description="Combined queue size above which commit() triggers an immediate flush",
    )
    raise_exceptions: bool = Field(
        default=False,
        description="Raise on invalid identifiers instead of logging and dropping",
    )
    debug: bool = Field(default=False, description="Emit per-record and per-chunk debug events")
    mutex_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline for a flush cycle waiting on the writer's mutex",
    )
    queue_max_size: int = Field(
        default=10_000,
        ge=1,
        description="Capacity of each in-memory queue before oldest-first eviction",
    )
    fallback_dir: Path | None = Field(
        default=None,
        description="Root for undelivered batches (defaults to the system temp dir)",
    )

    @field_validator("repository_id")
    @classmethod
    def validate_repository_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("repository_id must not be empty")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LoggerConfig(BaseModel):
    """Per-logger options supplied by application code."""

    model_config = {"frozen": True}

    id: str = Field(description="Log repository id for this logger")
    auto_flush: bool = Field(default=True)
    flush_interval_seconds: float = Field(default=10.0, gt=0)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("Logger must be initialized with id of the logger")
        return v


def load_settings(config_path: Path | None = None, **overrides: Any) -> WriterSettings:
    """Load writer settings from environment variables and an optional file.

    Uses Dynaconf for multi-source loading with precedence:
    1. Keyword overrides - highest priority
    2. Environment variables (TRACELOG_*)
    3. Config file (YAML/TOML), when given
    4. Defaults from the Pydantic schema - lowest priority

    Args:
        config_path: Optional settings file
        **overrides: Explicit values that win over every other source

    Returns:
        Validated WriterSettings instance

    Raises:
        ValidationError: If the merged configuration fails validation
        FileNotFoundError: If config_path is given but doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="TRACELOG",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
    )

    # Dynaconf returns uppercase keys and its own bookkeeping entries
    known_fields = set(WriterSettings.model_fields)
    raw_config = {
        key.lower(): value
        for key, value in dynaconf_settings.as_dict().items()
        if key.lower() in known_fields
    }
    raw_config.update(overrides)
    return WriterSettings(**raw_config)
