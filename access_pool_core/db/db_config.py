import os
from typing import Any, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import DatabaseConfig
from ..exceptions import ErrorCode, ServiceError
from ..utils.logger import get_logger

# Base class for all SQLAlchemy models
Base: Any = declarative_base()


def _is_sqlite(connection_string: str) -> bool:
    return connection_string.startswith("sqlite")


class DatabaseManager:
    """
    Owns the engine and the session factory handed to the SQL stores.

    Stores open one short session per operation from ``session_factory``;
    the manager never keeps a session of its own.
    """

    def __init__(self, config: DatabaseConfig, development_mode: bool = False):
        self.config = config
        self.development_mode = development_mode
        self.engine = self._create_engine()
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def _create_engine(self) -> Engine:
        connection_string = self.config.connection_string
        if _is_sqlite(connection_string):
            connect_args = {
                "check_same_thread": False,
                "timeout": self.config.sqlite_busy_timeout,
            }
            if ":memory:" in connection_string or connection_string == "sqlite://":
                # One shared connection, otherwise every checkout sees an empty database
                return create_engine(
                    connection_string,
                    echo=self.config.echo,
                    connect_args=connect_args,
                    poolclass=StaticPool,
                )
            return create_engine(
                connection_string, echo=self.config.echo, connect_args=connect_args
            )
        return create_engine(
            connection_string,
            echo=self.config.echo,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_pre_ping=True,
        )

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        if self.development_mode:
            Base.metadata.drop_all(self.engine)
        else:
            raise ServiceError(
                "Cannot drop tables: not in development mode",
                error_code=ErrorCode.CONFIGURATION_ERROR,
                operation="drop_tables",
            )

    def get_session(self) -> Session:
        return self.session_factory()

    def close(self) -> None:
        self.engine.dispose()


def get_development_config() -> DatabaseConfig:
    """
    Get SQLite configuration for development.
    """
    return DatabaseConfig(
        connection_string=f"sqlite:///{os.environ.get('DEV_DB_PATH', ':memory:')}",
        echo=os.environ.get("DB_ECHO", "False").lower() == "true",
    )


def get_production_config() -> DatabaseConfig:
    """
    Get Postgres configuration for production from environment variables.
    """
    if os.environ.get("DATABASE_URL"):
        return DatabaseConfig()
    user = os.environ.get("DB_USER", "postgres")
    password = os.environ.get("DB_PASSWORD", "")
    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", "5432")
    name = os.environ.get("DB_NAME", "access_pool")
    return DatabaseConfig(
        connection_string=f"postgresql://{user}:{password}@{host}:{port}/{name}",
        pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
        max_overflow=int(os.environ.get("DB_MAX_OVERFLOW", "10")),
        pool_timeout=int(os.environ.get("DB_POOL_TIMEOUT", "30")),
        echo=os.environ.get("DB_ECHO", "False").lower() == "true",
    )


def import_all_models():
    """Import all models to ensure they're registered with SQLAlchemy metadata."""
    from sqlalchemy.orm import configure_mappers

    from .db_pool_models import PoolEntry  # noqa
    from .db_token_models import AccessToken, TokenOpen  # noqa

    configure_mappers()


def initialize_db(
    config: Optional[DatabaseConfig] = None, development_mode: bool = False
) -> DatabaseManager:
    """
    Create a database manager and make sure the tables exist.

    Args:
        config: Optional DatabaseConfig. If None, uses production config from environment.
        development_mode: Allow drop_tables on the returned manager

    Returns:
        DatabaseManager: The initialized database manager
    """
    if config is None:
        config = get_production_config()

    manager = DatabaseManager(config, development_mode=development_mode)

    get_logger().info("Initializing DB", extra={"dialect": manager.engine.dialect.name})
    import_all_models()
    manager.create_tables()

    return manager
