"""Pydantic schemas for pool entries and ledger records."""

from .pool_schemas import ParsedCredential, PoolEntryRead
from .token_schemas import (
    AccessTokenCreate,
    AccessTokenRead,
    IssuedLink,
    TokenOpenInfo,
    TokenOpenRead,
    WhoReport,
)

__all__ = [
    "ParsedCredential",
    "PoolEntryRead",
    "AccessTokenCreate",
    "AccessTokenRead",
    "IssuedLink",
    "TokenOpenInfo",
    "TokenOpenRead",
    "WhoReport",
]
