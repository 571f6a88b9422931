"""
Wiring of stores, services and the command router from AppConfig.

Gateways and the redemption site call `build_application()` once at startup
and keep the returned Application for the life of the process.
"""

from dataclasses import dataclass
from typing import Optional

from .config import AppConfig, BotConfig, get_config
from .db.db_config import DatabaseManager, initialize_db
from .gateway.command_router import CommandRouter
from .repositories.base_repository import PoolStore, TokenLedger
from .repositories.memory_repository import InMemoryPoolStore, InMemoryTokenLedger
from .repositories.pool_repository import SqlPoolStore
from .repositories.token_repository import SqlTokenLedger
from .services.admin_service import AdminService
from .services.issuance_service import IssuanceService
from .services.redemption_service import RedemptionService
from .utils.audit_utils import (
    AuditNotifier,
    NullAuditNotifier,
    QueueAuditNotifier,
    TelegramChannelNotifier,
)
from .utils.logger import configure_logging


@dataclass
class Application:
    """Everything a gateway process needs."""

    config: AppConfig
    pool_store: PoolStore
    ledger: TokenLedger
    notifier: AuditNotifier
    issuance: IssuanceService
    admin: AdminService
    redemption: RedemptionService
    router: CommandRouter
    db_manager: Optional[DatabaseManager] = None

    def close(self) -> None:
        if self.db_manager is not None:
            self.db_manager.close()


def build_notifier(bot_config: BotConfig) -> AuditNotifier:
    """
    Pick the audit sink from configuration.

    The channel notifier wins when both a channel and a queue are configured.
    """
    if bot_config.audit_channel_id and bot_config.bot_token:
        return TelegramChannelNotifier(bot_config.bot_token, bot_config.audit_channel_id)
    if bot_config.audit_queue_name and bot_config.queue_connection_string:
        return QueueAuditNotifier(
            bot_config.queue_connection_string, bot_config.audit_queue_name
        )
    return NullAuditNotifier()


def build_application(
    config: Optional[AppConfig] = None,
    in_memory: bool = False,
    notifier: Optional[AuditNotifier] = None,
    process_name: str = "app",
) -> Application:
    """
    Build the stores, services and router.

    Args:
        config: Configuration (defaults to the global config)
        in_memory: Use the in-memory stores instead of the database
        notifier: Audit sink override (defaults to build_notifier)
        process_name: Logger name suffix for this process

    Returns:
        Application with all components wired together
    """
    config = config or get_config()
    issuance_config = config.issuance
    # Services bind the process logger when constructed
    logger = configure_logging(process_name, log_level=config.logging.level)

    db_manager = None
    if in_memory:
        pool_store: PoolStore = InMemoryPoolStore(
            claim_attempts=issuance_config.claim_attempts,
            batch_size=issuance_config.upload_batch_size,
        )
        ledger: TokenLedger = InMemoryTokenLedger()
    else:
        db_manager = initialize_db(
            config.database, development_mode=config.environment == "development"
        )
        pool_store = SqlPoolStore(
            db_manager.session_factory,
            claim_attempts=issuance_config.claim_attempts,
            batch_size=issuance_config.upload_batch_size,
        )
        ledger = SqlTokenLedger(db_manager.session_factory)

    notifier = notifier or build_notifier(config.bot)

    issuance = IssuanceService(
        pool_store, ledger, config.bot.site_base, notifier=notifier, config=issuance_config
    )
    admin = AdminService(
        pool_store, ledger, config.bot.admin_ids, notifier=notifier, config=issuance_config
    )
    redemption = RedemptionService(ledger)

    logger.info(
        "Application built",
        extra={
            "environment": config.environment,
            "in_memory": in_memory,
            "notifier": notifier.sink_name,
            "admin_count": len(config.bot.admin_ids),
        },
    )

    return Application(
        config=config,
        pool_store=pool_store,
        ledger=ledger,
        notifier=notifier,
        issuance=issuance,
        admin=admin,
        redemption=redemption,
        router=CommandRouter(issuance, admin),
        db_manager=db_manager,
    )
