"""
Token ledger models.

Just the data structure - no business logic. Tokens are never deleted.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from ..enums import TokenStatus
from .db_base import CreatedAtMixin, utc_now
from .db_config import Base


class AccessToken(Base, CreatedAtMixin):
    """Issued token with the credential copied from the claimed pool entry."""

    __tablename__ = "access_tokens"

    token = Column(String(64), primary_key=True)

    # Copied at issuance, immutable
    login = Column(Text, nullable=False)
    secret = Column(Text, nullable=False)
    owner_id = Column(String(100), nullable=False, default="", index=True)
    owner_handle = Column(String(100), nullable=False, default="")
    pool_entry_id = Column(Integer, nullable=True)

    # Lifecycle
    status = Column(String(16), nullable=False, default=TokenStatus.ACTIVE.value)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(String(100), nullable=True)

    # Access tracking for the redemption site
    access_count = Column(Integer, nullable=False, default=0)
    last_access_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_access_token_created", "created_at"),)


class TokenOpen(Base):
    """One resolution of a link by the redemption site."""

    __tablename__ = "token_opens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(64), nullable=False)
    opened_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    ip = Column(String(64), nullable=True)
    user_agent = Column(Text, nullable=True)
    platform = Column(String(100), nullable=True)
    language = Column(String(50), nullable=True)
    screen = Column(String(50), nullable=True)
    timezone = Column(String(100), nullable=True)

    __table_args__ = (Index("ix_token_open_lookup", "token", "opened_at"),)
