"""Pool store and token ledger implementations."""

from .base_repository import PoolStore, SqlRepository, TokenLedger
from .memory_repository import InMemoryPoolStore, InMemoryTokenLedger
from .pool_repository import SqlPoolStore
from .token_repository import SqlTokenLedger, normalize_owner_query

__all__ = [
    # Contracts
    "PoolStore",
    "TokenLedger",
    "SqlRepository",
    # SQLAlchemy
    "SqlPoolStore",
    "SqlTokenLedger",
    # In-memory
    "InMemoryPoolStore",
    "InMemoryTokenLedger",
    "normalize_owner_query",
]
