"""
Pydantic schemas for issued tokens, link opens and issuance results.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..db.db_base import as_utc
from ..enums import TokenStatus


class AccessTokenCreate(BaseModel):
    """Ledger record written at issuance."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    token: str = Field(..., min_length=1, max_length=64)
    login: str = Field(..., min_length=1)
    secret: str = Field(..., min_length=1)
    owner_id: str = Field(default="")
    owner_handle: str = Field(default="")
    pool_entry_id: Optional[int] = None
    created_at: Optional[datetime] = None


class AccessTokenRead(BaseModel):
    """Ledger record as returned by a store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    token: str
    login: str
    secret: str
    owner_id: str
    owner_handle: str
    pool_entry_id: Optional[int] = None
    status: TokenStatus
    created_at: datetime
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    access_count: int = 0
    last_access_at: Optional[datetime] = None

    @field_validator("created_at", "revoked_at", "last_access_at")
    def attach_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """SQLite hands back naive datetimes; everything here is UTC."""
        return as_utc(v)

    @property
    def is_active(self) -> bool:
        return self.status == TokenStatus.ACTIVE


class TokenOpenInfo(BaseModel):
    """Client details reported by the redemption site when a link is opened."""

    model_config = ConfigDict(str_strip_whitespace=True)

    ip: Optional[str] = None
    user_agent: Optional[str] = None
    platform: Optional[str] = None
    language: Optional[str] = None
    screen: Optional[str] = None
    timezone: Optional[str] = None


class TokenOpenRead(TokenOpenInfo):
    """One recorded link open."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    token: str
    opened_at: datetime

    @field_validator("opened_at")
    def attach_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class IssuedLink(BaseModel):
    """Result of a successful issuance."""

    model_config = ConfigDict(frozen=True)

    token: str
    link: str
    login: str
    owner_id: str


class WhoReport(BaseModel):
    """Token record plus its open history."""

    model_config = ConfigDict(frozen=True)

    token: AccessTokenRead
    open_count: int
    recent_opens: List[TokenOpenRead] = Field(default_factory=list)
