"""
SQLAlchemy token ledger.

Tokens are append-only: rows are inserted at issuance and afterwards only the
status and access counters change.
"""

from typing import List, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError

from ..db.db_base import utc_now
from ..db.db_token_models import AccessToken, TokenOpen
from ..enums import TokenStatus
from ..exceptions import DuplicateTokenError
from ..schemas.token_schemas import (
    AccessTokenCreate,
    AccessTokenRead,
    TokenOpenInfo,
    TokenOpenRead,
)
from .base_repository import SqlRepository, TokenLedger


def normalize_owner_query(query: str) -> str:
    """Lowercase and drop a leading ``@`` so handles match with or without it."""
    return (query or "").strip().lstrip("@").lower()


class SqlTokenLedger(SqlRepository, TokenLedger):
    """Ledger backed by the ``access_tokens`` and ``token_opens`` tables."""

    entity_name = "AccessToken"

    def insert(self, record: AccessTokenCreate) -> AccessTokenRead:
        with self._session_scope("insert", token=record.token) as session:
            row = AccessToken(
                token=record.token,
                login=record.login,
                secret=record.secret,
                owner_id=record.owner_id,
                owner_handle=record.owner_handle,
                pool_entry_id=record.pool_entry_id,
                created_at=record.created_at or utc_now(),
                status=TokenStatus.ACTIVE.value,
                access_count=0,
            )
            session.add(row)
            try:
                session.flush()
            except IntegrityError as e:
                raise DuplicateTokenError(
                    f"Token already exists: {record.token}", token=record.token, cause=e
                ) from e

            stored = AccessTokenRead.model_validate(row)
            session.commit()

        self.logger.info(
            "Token recorded",
            extra={"token": stored.token, "owner_id": stored.owner_id, "login": stored.login},
        )
        return stored

    def get(self, token: str) -> Optional[AccessTokenRead]:
        with self._session_scope("get", token=token) as session:
            row = session.get(AccessToken, token)
            return AccessTokenRead.model_validate(row) if row else None

    def revoke(self, token: str, by_actor: str) -> Optional[AccessTokenRead]:
        with self._session_scope("revoke", token=token) as session:
            result = session.execute(
                update(AccessToken)
                .where(
                    AccessToken.token == token,
                    AccessToken.status == TokenStatus.ACTIVE.value,
                )
                .values(
                    status=TokenStatus.REVOKED.value,
                    revoked_at=utc_now(),
                    revoked_by=by_actor,
                )
                .execution_options(synchronize_session=False)
            )
            changed = result.rowcount == 1
            row = session.get(AccessToken, token)
            if row is None:
                return None

            stored = AccessTokenRead.model_validate(row)
            session.commit()

        self.logger.info(
            "Token revoked" if changed else "Token already revoked",
            extra={"token": token, "by_actor": by_actor},
        )
        return stored

    def list_recent(self, limit: int, active_only: bool = False) -> List[AccessTokenRead]:
        with self._session_scope("list_recent", limit=limit) as session:
            stmt = select(AccessToken)
            if active_only:
                stmt = stmt.where(AccessToken.status == TokenStatus.ACTIVE.value)
            rows = session.scalars(
                stmt.order_by(AccessToken.created_at.desc(), AccessToken.token.asc()).limit(limit)
            ).all()
            return [AccessTokenRead.model_validate(row) for row in rows]

    def search_by_owner(self, query: str, limit: int = 50) -> List[AccessTokenRead]:
        needle = normalize_owner_query(query)
        if not needle:
            return []

        with self._session_scope("search_by_owner", query=needle) as session:
            rows = session.scalars(
                select(AccessToken)
                .where(
                    or_(
                        func.lower(AccessToken.owner_id).contains(needle, autoescape=True),
                        func.lower(AccessToken.owner_handle).contains(needle, autoescape=True),
                    )
                )
                .order_by(AccessToken.created_at.desc())
                .limit(limit)
            ).all()
            return [AccessTokenRead.model_validate(row) for row in rows]

    def record_access(
        self, token: str, open_info: Optional[TokenOpenInfo] = None
    ) -> Optional[AccessTokenRead]:
        now = utc_now()
        with self._session_scope("record_access", token=token) as session:
            result = session.execute(
                update(AccessToken)
                .where(
                    AccessToken.token == token,
                    AccessToken.status == TokenStatus.ACTIVE.value,
                )
                .values(access_count=AccessToken.access_count + 1, last_access_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Missing or revoked; a revoked record comes back unchanged
                row = session.get(AccessToken, token)
                return AccessTokenRead.model_validate(row) if row else None

            if open_info is not None:
                session.add(TokenOpen(token=token, opened_at=now, **open_info.model_dump()))

            stored = AccessTokenRead.model_validate(session.get(AccessToken, token))
            session.commit()
            return stored

    def count_opens(self, token: str) -> int:
        with self._session_scope("count_opens", token=token) as session:
            return session.execute(
                select(func.count(TokenOpen.id)).where(TokenOpen.token == token)
            ).scalar_one()

    def list_opens(self, token: str, limit: int = 5) -> List[TokenOpenRead]:
        with self._session_scope("list_opens", token=token) as session:
            rows = session.scalars(
                select(TokenOpen)
                .where(TokenOpen.token == token)
                .order_by(TokenOpen.opened_at.desc(), TokenOpen.id.desc())
                .limit(limit)
            ).all()
            return [TokenOpenRead.model_validate(row) for row in rows]
