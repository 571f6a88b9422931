"""
Credential pool model.

Just the data structure; claiming is done by the pool store with a
conditional update.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from ..enums import PoolEntryStatus
from .db_base import CreatedAtMixin
from .db_config import Base


class PoolEntry(Base, CreatedAtMixin):
    """One unissued (or already claimed) `login:secret` line."""

    __tablename__ = "pool_entries"

    # Autoincrement id defines FIFO claim order
    id = Column(Integer, primary_key=True, autoincrement=True)
    value = Column(Text, nullable=False)

    status = Column(
        String(16), nullable=False, default=PoolEntryStatus.UNCLAIMED.value, index=True
    )
    claimed_by = Column(String(100), nullable=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_pool_entry_status_id", "status", "id"),)
