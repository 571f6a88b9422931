"""
Constants and enums for the access pool.

Centralizes environment variable names, audit event names and numeric
defaults so the services, the router and the tests agree on them.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    DATABASE_URL = "DATABASE_URL"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    DEBUG = "DEBUG"
    BOT_TOKEN = "BOT_TOKEN"
    SITE_BASE = "SITE_BASE"
    ADMIN_IDS = "ADMIN_IDS"
    TG_CHANNEL_ID = "TG_CHANNEL_ID"
    AUDIT_QUEUE_NAME = "AUDIT_QUEUE_NAME"


class AuditEvent(str, Enum):
    """Events forwarded to the audit channel."""

    ISSUED = "ISSUED"
    REVOKE = "REVOKE"
    EMPTY = "EMPTY"
    UPLOAD_TEXT = "UPLOAD_TEXT"
    UPLOAD_FILE = "UPLOAD_FILE"
    LEDGER_FAILED = "LEDGER_FAILED"
    ERROR = "ERROR"


class Limits:
    """System limits and thresholds."""

    DEFAULT_TOKEN_LENGTH = 10
    MIN_TOKEN_LENGTH = 6
    DEFAULT_CLAIM_ATTEMPTS = 5
    DEFAULT_LEDGER_INSERT_ATTEMPTS = 3
    DEFAULT_UPLOAD_BATCH_SIZE = 500
    DEFAULT_RECENT_LIMIT = 10
    DEFAULT_WHO_OPENS_LIMIT = 5
    MAX_LIST_LIMIT = 100


class Timeouts:
    """Timeout values in seconds."""

    DATABASE_QUERY = 30
    SQLITE_BUSY = 30
    AUDIT_HTTP = 10


TOKEN_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
CREDENTIAL_SEPARATOR = ":"
PLACEHOLDER_LOGIN_PREFIX = "user_"
