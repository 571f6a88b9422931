"""
Enums shared by the database models, the schemas and the stores.

Kept apart from the models to avoid circular imports.
"""

import enum


class PoolEntryStatus(str, enum.Enum):
    """Lifecycle of a pool entry; unclaimed -> claimed only."""

    UNCLAIMED = "unclaimed"
    CLAIMED = "claimed"


class TokenStatus(str, enum.Enum):
    """Lifecycle of an issued token; active -> revoked only."""

    ACTIVE = "active"
    REVOKED = "revoked"
