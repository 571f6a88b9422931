"""
Centralized configuration management for the access pool.

This module provides a unified configuration system with support for:
- Environment variables
- Runtime configuration
- Validation using Pydantic
"""

import os
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, Field, field_validator

from .constants import EnvironmentVariable, Limits, LogLevel, Timeouts


def _parse_admin_ids(raw: str) -> FrozenSet[str]:
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.DATABASE_URL.value, "sqlite:///./access_pool.db"
        ),
        description="Database connection string",
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    sqlite_busy_timeout: int = Field(
        default=Timeouts.SQLITE_BUSY, description="Seconds a SQLite writer waits for the lock"
    )
    echo: bool = Field(default=False, description="Echo SQL statements")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class BotConfig(BaseModel):
    """Chat gateway, link and audit channel settings."""

    bot_token: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.BOT_TOKEN.value, ""),
        description="Bot API token, also used by the audit channel notifier",
    )
    site_base: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.SITE_BASE.value, ""),
        description="Base URL of the redemption site",
    )
    admin_ids: FrozenSet[str] = Field(
        default_factory=lambda: _parse_admin_ids(
            os.getenv(EnvironmentVariable.ADMIN_IDS.value, "")
        ),
        description="Actor ids allowed to run administrator commands",
    )
    audit_channel_id: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.TG_CHANNEL_ID.value, ""),
        description="Chat id that receives audit events; empty disables it",
    )
    audit_queue_name: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AUDIT_QUEUE_NAME.value, ""),
        description="Azure Storage queue that receives audit events; empty disables it",
    )
    queue_connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string",
    )

    @field_validator("site_base")
    def strip_trailing_slashes(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("admin_ids", mode="before")
    def coerce_admin_ids(cls, v: Any) -> Any:
        """Accept the raw comma separated form as well as any iterable."""
        if isinstance(v, str):
            return _parse_admin_ids(v)
        if v is None:
            return frozenset()
        return frozenset(str(item).strip() for item in v if str(item).strip())


class IssuanceConfig(BaseModel):
    """Tuning for token generation, claiming and uploads."""

    token_length: int = Field(
        default=Limits.DEFAULT_TOKEN_LENGTH,
        ge=Limits.MIN_TOKEN_LENGTH,
        description="Length of generated tokens",
    )
    claim_attempts: int = Field(
        default=Limits.DEFAULT_CLAIM_ATTEMPTS, ge=1, description="Conditional claim attempts"
    )
    ledger_insert_attempts: int = Field(
        default=Limits.DEFAULT_LEDGER_INSERT_ATTEMPTS,
        ge=1,
        description="Ledger insert attempts before the payload is re-queued",
    )
    upload_batch_size: int = Field(
        default=Limits.DEFAULT_UPLOAD_BATCH_SIZE, ge=1, description="Rows per insert batch"
    )
    public_stock: bool = Field(
        default=False, description="Allow non-administrators to query the pool size"
    )
    recent_limit: int = Field(
        default=Limits.DEFAULT_RECENT_LIMIT, ge=1, le=Limits.MAX_LIST_LIMIT
    )
    who_opens_limit: int = Field(default=Limits.DEFAULT_WHO_OPENS_LIMIT, ge=1)


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DEBUG.value, "false").lower()
        == "true",
        description="Debug mode",
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    bot: BotConfig = Field(default_factory=BotConfig)
    issuance: IssuanceConfig = Field(default_factory=IssuanceConfig)

    custom: Dict[str, Any] = Field(default_factory=dict, description="Custom configuration values")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()

    def get_custom(self, key: str, default: Any = None) -> Any:
        """Get a custom configuration value."""
        return self.custom.get(key, default)


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
