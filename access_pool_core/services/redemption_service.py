"""Token resolution for the redemption site."""

from typing import Optional

from ..context.operation_context import operation
from ..exceptions import TokenRevokedError, token_not_found
from ..repositories.base_repository import TokenLedger
from ..schemas.token_schemas import AccessTokenRead, TokenOpenInfo
from ..utils.logger import get_logger


def _revoked(record: AccessTokenRead) -> TokenRevokedError:
    return TokenRevokedError(
        f"Token has been revoked: {record.token}",
        token=record.token,
        revoked_at=record.revoked_at.isoformat() if record.revoked_at else None,
    )


class RedemptionService:
    """Looks up the credential behind a link and records the open."""

    def __init__(self, ledger: TokenLedger):
        self.ledger = ledger
        self.logger = get_logger()

    @operation()
    def resolve(self, token: str, open_info: Optional[TokenOpenInfo] = None) -> AccessTokenRead:
        """
        Resolve a token to its credential.

        Args:
            token: Token from the link's ``t`` parameter
            open_info: Client details to store with the open, if reported

        Returns:
            The ledger record with access_count already incremented

        Raises:
            TokenNotFoundError: Unknown token
            TokenRevokedError: Token was revoked by an administrator
        """
        token = (token or "").strip()
        record = self.ledger.get(token) if token else None
        if record is None:
            raise token_not_found(token)

        if not record.is_active:
            raise _revoked(record)

        # Counts active tokens only; a revoke may have landed since the read
        updated = self.ledger.record_access(token, open_info)
        if updated is None:
            raise token_not_found(token)
        if not updated.is_active:
            raise _revoked(updated)

        self.logger.info(
            "Token resolved", extra={"token": token, "access_count": updated.access_count}
        )
        return updated
