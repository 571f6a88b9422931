"""Utility modules for the access pool."""

# Logging utilities
from .logger import (
    ActorContextFilter,
    ContextAwareLogger,
    configure_logging,
    get_logger,
    reset_logging,
)

# Token utilities
from .token_utils import build_link, generate_token

__all__ = [
    # Logging utilities
    "ActorContextFilter",
    "ContextAwareLogger",
    "configure_logging",
    "get_logger",
    "reset_logging",
    # Token utilities
    "build_link",
    "generate_token",
]
