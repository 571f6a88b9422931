"""
SQLAlchemy models and database plumbing for the pool and the ledger.
"""

from .db_base import CreatedAtMixin, as_utc, utc_now
from .db_config import (
    Base,
    DatabaseManager,
    get_development_config,
    get_production_config,
    import_all_models,
    initialize_db,
)
from .db_pool_models import PoolEntry
from .db_token_models import AccessToken, TokenOpen

__all__ = [
    # Base definitions
    "Base",
    "CreatedAtMixin",
    "as_utc",
    "utc_now",
    # Configuration
    "DatabaseManager",
    "get_development_config",
    "get_production_config",
    "import_all_models",
    "initialize_db",
    # Models
    "PoolEntry",
    "AccessToken",
    "TokenOpen",
]
