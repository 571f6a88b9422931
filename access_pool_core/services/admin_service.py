"""
Administrator operations: revocation, lookups, stock and bulk upload.

Every operation checks the actor against the configured allow-list first and
raises PermissionDeniedError for anyone else. How a denial is presented is
up to the caller.
"""

from typing import AbstractSet, List, Optional, Union

from ..config import IssuanceConfig
from ..constants import AuditEvent, Limits
from ..context.operation_context import operation
from ..exceptions import MalformedInputError, permission_denied, token_not_found
from ..repositories.base_repository import PoolStore, TokenLedger
from ..schemas.token_schemas import AccessTokenRead, WhoReport
from ..utils.audit_utils import AuditNotifier, NullAuditNotifier
from ..utils.credential_utils import normalize_lines
from ..utils.logger import get_logger


def is_admin(actor_id: Optional[str], admin_ids: AbstractSet[str]) -> bool:
    """True if the actor is on the administrator allow-list."""
    if actor_id is None:
        return False
    return str(actor_id) in admin_ids


class AdminService:
    """Administrator-only views and mutations over the pool and the ledger."""

    def __init__(
        self,
        pool_store: PoolStore,
        ledger: TokenLedger,
        admin_ids: AbstractSet[str],
        notifier: Optional[AuditNotifier] = None,
        config: Optional[IssuanceConfig] = None,
    ):
        self.pool_store = pool_store
        self.ledger = ledger
        self.admin_ids = frozenset(admin_ids)
        self.notifier = notifier or NullAuditNotifier()
        self.config = config or IssuanceConfig()
        self.logger = get_logger()

    def require_admin(self, action: str, actor_id: Optional[str]) -> None:
        """
        Raises:
            PermissionDeniedError: Actor is not an administrator
        """
        if not is_admin(actor_id, self.admin_ids):
            raise permission_denied(action, str(actor_id))

    def _get_or_raise(self, token: str) -> AccessTokenRead:
        record = self.ledger.get(token)
        if record is None:
            raise token_not_found(token)
        return record

    @operation()
    def revoke(
        self, token: str, actor_id: str, actor_handle: Optional[str] = None
    ) -> AccessTokenRead:
        """
        Disable an issued token.

        Revoking a token twice returns the record from the first revocation.

        Raises:
            PermissionDeniedError: Actor is not an administrator
            TokenNotFoundError: Unknown token
        """
        self.require_admin("revoke", actor_id)

        existing = self._get_or_raise(token)
        if not existing.is_active:
            self.logger.info("Token already revoked", extra={"token": token})
            return existing

        record = self.ledger.revoke(token, by_actor=str(actor_id))
        if record is None:
            raise token_not_found(token)

        self.notifier.emit(
            AuditEvent.REVOKE,
            actor_role="by",
            actor_handle=actor_handle,
            actor_id=actor_id,
            token=token,
        )
        return record

    @operation()
    def info(self, token: str, actor_id: str) -> AccessTokenRead:
        """Full ledger record for a token, credentials included."""
        self.require_admin("info", actor_id)
        return self._get_or_raise(token)

    @operation()
    def who(self, token: str, actor_id: str, limit: Optional[int] = None) -> WhoReport:
        """Ledger record plus how often and from where the link was opened."""
        self.require_admin("who", actor_id)
        record = self._get_or_raise(token)

        limit = limit or self.config.who_opens_limit
        return WhoReport(
            token=record,
            open_count=self.ledger.count_opens(token),
            recent_opens=self.ledger.list_opens(token, limit=limit),
        )

    @operation()
    def list_tokens(
        self, actor_id: str, limit: Optional[int] = None, active_only: bool = False
    ) -> List[AccessTokenRead]:
        self.require_admin("list", actor_id)
        limit = min(limit or self.config.recent_limit, Limits.MAX_LIST_LIMIT)
        return self.ledger.list_recent(limit, active_only=active_only)

    @operation()
    def search(self, actor_id: str, query: str) -> List[AccessTokenRead]:
        self.require_admin("search", actor_id)
        return self.ledger.search_by_owner(query, limit=Limits.MAX_LIST_LIMIT)

    @operation()
    def stock(self, actor_id: str) -> int:
        """Number of unclaimed pool entries; public when configured so."""
        if not self.config.public_stock:
            self.require_admin("stock", actor_id)
        return self.pool_store.count_unclaimed()

    @operation()
    def upload(
        self,
        actor_id: str,
        actor_handle: Optional[str] = None,
        text: Optional[str] = None,
        file_content: Optional[Union[str, bytes]] = None,
    ) -> int:
        """
        Bulk load credentials, one per line, from inline text or a file.

        Returns:
            Number of entries added to the pool

        Raises:
            PermissionDeniedError: Actor is not an administrator
            MalformedInputError: No usable lines; nothing was written
            PoolUploadError: A batch failed after earlier batches committed
        """
        self.require_admin("upload", actor_id)

        from_file = file_content is not None
        lines = normalize_lines(file_content if from_file else text)
        if not lines:
            raise MalformedInputError(
                "Upload contained no credential lines",
                source="file" if from_file else "text",
            )

        inserted = self.pool_store.enqueue(lines)

        self.notifier.emit(
            AuditEvent.UPLOAD_FILE if from_file else AuditEvent.UPLOAD_TEXT,
            actor_role="admin",
            actor_handle=actor_handle,
            actor_id=actor_id,
            count=inserted,
        )
        return inserted
