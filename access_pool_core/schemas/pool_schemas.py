"""
Pydantic schemas for credential pool entries.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..db.db_base import as_utc
from ..enums import PoolEntryStatus


class PoolEntryRead(BaseModel):
    """A pool entry as returned by a store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    value: str
    status: PoolEntryStatus
    claimed_by: Optional[str] = None
    claimed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("claimed_at", "created_at")
    def attach_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class ParsedCredential(BaseModel):
    """Login and secret split out of a pool payload."""

    model_config = ConfigDict(frozen=True)

    login: str = Field(..., min_length=1)
    secret: str = Field(..., min_length=1)
    synthesized_login: bool = Field(
        default=False, description="True when the payload carried no login"
    )
