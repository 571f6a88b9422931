"""
Test fixtures shared by unit and integration tests.

Every test gets its own file-backed SQLite database under tmp_path, so SQL
stores can be exercised from several threads without leaking state between
tests. The in-memory stores are real implementations, not mocks.
"""

import pytest
from sqlalchemy.orm import Session

from access_pool_core.config import (
    AppConfig,
    BotConfig,
    DatabaseConfig,
    IssuanceConfig,
    reset_config,
    set_config,
)
from access_pool_core.constants import EnvironmentVariable
from access_pool_core.context.actor_context import ActorContext
from access_pool_core.db.db_config import DatabaseManager, initialize_db
from access_pool_core.exceptions import clear_correlation_id
from access_pool_core.repositories import (
    InMemoryPoolStore,
    InMemoryTokenLedger,
    SqlPoolStore,
    SqlTokenLedger,
)
from access_pool_core.services import AdminService, IssuanceService, RedemptionService
from access_pool_core.utils.logger import reset_logging
from tests.fixtures.doubles import ADMIN_ID, SITE_BASE, RecordingNotifier
from tests.fixtures.factories import configure_factories


# ==================== ISOLATION ====================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Clear env-driven configuration and thread-local context around each test."""
    for variable in EnvironmentVariable:
        monkeypatch.delenv(variable.value, raising=False)

    reset_config()
    reset_logging()
    clear_correlation_id()
    ActorContext.clear_current_actor()

    yield

    reset_config()
    reset_logging()
    clear_correlation_id()
    ActorContext.clear_current_actor()


# ==================== CONFIGURATION ====================


@pytest.fixture
def issuance_config() -> IssuanceConfig:
    return IssuanceConfig(claim_attempts=5, ledger_insert_attempts=3, upload_batch_size=500)


@pytest.fixture
def app_config(db_config: DatabaseConfig, issuance_config: IssuanceConfig) -> AppConfig:
    config = AppConfig(
        environment="test",
        database=db_config,
        bot=BotConfig(site_base=SITE_BASE, admin_ids=ADMIN_ID),
        issuance=issuance_config,
    )
    set_config(config)
    return config


# ==================== DATABASE ====================


@pytest.fixture
def db_config(tmp_path) -> DatabaseConfig:
    """SQLite database file private to the test."""
    return DatabaseConfig(connection_string=f"sqlite:///{tmp_path / 'access_pool.db'}")


@pytest.fixture
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    manager = initialize_db(db_config, development_mode=True)
    yield manager
    manager.close()


@pytest.fixture
def session_factory(db_manager: DatabaseManager):
    return db_manager.session_factory


@pytest.fixture
def db_session(db_manager: DatabaseManager) -> Session:
    """Session bound to the factory_boy factories; stores open their own sessions."""
    session = db_manager.get_session()
    configure_factories(session)
    yield session
    session.close()


# ==================== STORES ====================


@pytest.fixture
def sql_pool_store(session_factory) -> SqlPoolStore:
    return SqlPoolStore(session_factory, claim_attempts=5, batch_size=500)


@pytest.fixture
def sql_ledger(session_factory) -> SqlTokenLedger:
    return SqlTokenLedger(session_factory)


@pytest.fixture
def memory_pool_store() -> InMemoryPoolStore:
    return InMemoryPoolStore(claim_attempts=5, batch_size=500)


@pytest.fixture
def memory_ledger() -> InMemoryTokenLedger:
    return InMemoryTokenLedger()


@pytest.fixture(params=["sql", "memory"])
def pool_store(request):
    """Each pool store implementation in turn."""
    return request.getfixturevalue(f"{request.param}_pool_store")


@pytest.fixture(params=["sql", "memory"])
def ledger(request):
    """Each token ledger implementation in turn."""
    return request.getfixturevalue(f"{request.param}_ledger")


# ==================== SERVICES ====================


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def issuance_service(memory_pool_store, memory_ledger, notifier, issuance_config):
    return IssuanceService(
        memory_pool_store, memory_ledger, SITE_BASE, notifier=notifier, config=issuance_config
    )


@pytest.fixture
def admin_service(memory_pool_store, memory_ledger, notifier, issuance_config):
    return AdminService(
        memory_pool_store,
        memory_ledger,
        frozenset({ADMIN_ID}),
        notifier=notifier,
        config=issuance_config,
    )


@pytest.fixture
def redemption_service(memory_ledger):
    return RedemptionService(memory_ledger)
