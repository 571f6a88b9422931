"""
Issuance of access links.

One issuance claims a pool entry, splits it into login and secret, records a
fresh token in the ledger and returns the public link. The claim and the
ledger insert are two separate storage calls; when the insert cannot be
completed the claimed payload is re-queued as a new pool entry so that it is
not lost, and the claimed original stays claimed.

An insert that failed with a storage error may still have committed. Before a
new token is drawn or the payload goes back into the pool, the ledger is read
back; a row for this pool entry counts as the issued token, so a credential
never ends up behind two tokens.
"""

from typing import Optional

from ..config import IssuanceConfig
from ..constants import AuditEvent
from ..context.operation_context import operation
from ..exceptions import (
    BaseError,
    CorruptPoolEntryError,
    DuplicateTokenError,
    ErrorCode,
    NoEntriesAvailableError,
    StorageTransientError,
    ValidationError,
)
from ..repositories.base_repository import PoolStore, TokenLedger
from ..schemas.pool_schemas import ParsedCredential, PoolEntryRead
from ..schemas.token_schemas import AccessTokenCreate, AccessTokenRead, IssuedLink
from ..utils.audit_utils import AuditNotifier, NullAuditNotifier
from ..utils.credential_utils import parse_credential
from ..utils.logger import get_logger
from ..utils.token_utils import build_link, generate_token


class IssuanceService:
    """
    Dispenses one pool credential per request behind a fresh token.

    Collaborators are injected so the same service runs against the SQL
    stores in deployment and the in-memory stores in tests.
    """

    def __init__(
        self,
        pool_store: PoolStore,
        ledger: TokenLedger,
        site_base: str,
        notifier: Optional[AuditNotifier] = None,
        config: Optional[IssuanceConfig] = None,
    ):
        """
        Args:
            pool_store: Source of credentials
            ledger: Destination for issued tokens
            site_base: Base URL of the redemption site
            notifier: Audit sink (defaults to NullAuditNotifier)
            config: Token length and retry budgets

        Raises:
            ValidationError: If site_base is empty
        """
        if not site_base:
            raise ValidationError(
                "site_base is required to build links",
                field="site_base",
                error_code=ErrorCode.CONFIGURATION_ERROR,
            )
        self.pool_store = pool_store
        self.ledger = ledger
        self.site_base = site_base
        self.notifier = notifier or NullAuditNotifier()
        self.config = config or IssuanceConfig()
        self.logger = get_logger()

    @operation()
    def issue(self, owner_id: str, owner_handle: Optional[str] = None) -> IssuedLink:
        """
        Issue a link to the requesting user.

        Args:
            owner_id: Opaque id of the requester
            owner_handle: Display handle of the requester, if any

        Returns:
            IssuedLink with the token, the public link and the login

        Raises:
            NoEntriesAvailableError: Pool is empty
            CorruptPoolEntryError: Claimed entry is not a usable credential
            StorageTransientError: Storage failed; nothing was issued
        """
        owner_id = str(owner_id)
        owner_handle = owner_handle or ""

        try:
            entry = self.pool_store.claim_one(claimant_id=owner_id)
        except NoEntriesAvailableError:
            self.notifier.emit(AuditEvent.EMPTY, actor_handle=owner_handle, actor_id=owner_id)
            raise

        try:
            credential = parse_credential(entry.value, entry_id=entry.id)
        except CorruptPoolEntryError as e:
            # The entry stays claimed so it shows up as a claimed row with no token
            self.notifier.emit(
                AuditEvent.ERROR,
                actor_handle=owner_handle,
                actor_id=owner_id,
                entry_id=entry.id,
                reason=e.message,
            )
            raise

        record = self._record_token(entry, credential, owner_id, owner_handle)
        link = build_link(self.site_base, record.token)

        self.notifier.emit(
            AuditEvent.ISSUED,
            actor_handle=owner_handle,
            actor_id=owner_id,
            login=record.login,
            token=record.token,
            link=link,
        )
        return IssuedLink(token=record.token, link=link, login=record.login, owner_id=owner_id)

    def _record_token(
        self,
        entry: PoolEntryRead,
        credential: ParsedCredential,
        owner_id: str,
        owner_handle: str,
    ) -> AccessTokenRead:
        """
        Insert the ledger record, retrying within the configured budget.

        A duplicate token gets a fresh token; a storage failure retries the
        same token, since the failed insert may or may not have landed. A
        duplicate on that retried token means it may be our own earlier
        insert, so the ledger is asked before a new token is drawn.
        """
        token = generate_token(self.config.token_length)
        unconfirmed: Optional[str] = None
        last_error: Optional[BaseError] = None

        for attempt in range(1, self.config.ledger_insert_attempts + 1):
            try:
                return self.ledger.insert(
                    AccessTokenCreate(
                        token=token,
                        login=credential.login,
                        secret=credential.secret,
                        owner_id=owner_id,
                        owner_handle=owner_handle,
                        pool_entry_id=entry.id,
                    )
                )
            except DuplicateTokenError as e:
                last_error = e
                if token == unconfirmed:
                    try:
                        landed = self._find_landed(token, entry)
                    except StorageTransientError as lookup_error:
                        # Still unknown; retry the same token
                        last_error = lookup_error
                    else:
                        if landed is not None:
                            return landed
                        unconfirmed = None
                        token = generate_token(self.config.token_length)
                else:
                    token = generate_token(self.config.token_length)
            except StorageTransientError as e:
                last_error = e
                unconfirmed = token

            self.logger.warning(
                "Ledger insert failed",
                extra={
                    "entry_id": entry.id,
                    "attempt": attempt,
                    "error_code": last_error.error_code.value,
                },
            )

        if unconfirmed is not None:
            try:
                landed = self._find_landed(unconfirmed, entry)
            except StorageTransientError as e:
                self.logger.error(
                    "Could not confirm ledger insert, payload not re-queued",
                    extra={"entry_id": entry.id, "token": unconfirmed},
                )
                self._compensate(entry, owner_id, owner_handle, e, requeue=False)
            if landed is not None:
                return landed

        self._compensate(entry, owner_id, owner_handle, last_error)

    def _find_landed(self, token: str, entry: PoolEntryRead) -> Optional[AccessTokenRead]:
        """Ledger record for `token` if it was written for this pool entry."""
        record = self.ledger.get(token)
        if record is not None and record.pool_entry_id == entry.id:
            self.logger.info(
                "Ledger insert had landed despite the error",
                extra={"entry_id": entry.id, "token": token},
            )
            return record
        return None

    def _compensate(
        self,
        entry: PoolEntryRead,
        owner_id: str,
        owner_handle: str,
        last_error: Optional[BaseError],
        requeue: bool = True,
    ):
        """
        Put the claimed payload back into the pool and fail the request.

        With ``requeue=False`` the payload is left out of the pool because a
        ledger row for it may exist.

        Raises:
            StorageTransientError: Always
        """
        requeued = False
        if requeue:
            try:
                self.pool_store.enqueue([entry.value])
                requeued = True
            except BaseError as e:
                self.logger.error(
                    "Re-queue after ledger failure failed, pool needs manual replenishment",
                    extra={"entry_id": entry.id, "error_code": e.error_code.value},
                )

        self.notifier.emit(
            AuditEvent.LEDGER_FAILED,
            actor_handle=owner_handle,
            actor_id=owner_id,
            entry_id=entry.id,
            requeued=requeued,
        )
        raise StorageTransientError(
            "Could not record the issued token",
            entry_id=entry.id,
            requeued=requeued,
            cause=last_error,
        ) from last_error
