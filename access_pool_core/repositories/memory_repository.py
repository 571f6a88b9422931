"""
In-memory pool store and token ledger.

Used by unit tests and local runs. Each call takes a short lock, so the claim
loop still goes through the same pick-candidate then compare-and-set steps as
the SQL store, and concurrent callers can lose a claim and move on.
"""

import threading
from typing import Dict, List, Optional, Sequence

from ..constants import Limits
from ..db.db_base import utc_now
from ..enums import PoolEntryStatus, TokenStatus
from ..exceptions import (
    ConflictLostError,
    DuplicateTokenError,
    NoEntriesAvailableError,
)
from ..schemas.pool_schemas import PoolEntryRead
from ..schemas.token_schemas import (
    AccessTokenCreate,
    AccessTokenRead,
    TokenOpenInfo,
    TokenOpenRead,
)
from ..utils.credential_utils import chunked
from ..utils.logger import get_logger
from .base_repository import PoolStore, TokenLedger
from .token_repository import normalize_owner_query


class InMemoryPoolStore(PoolStore):
    """Pool store keeping entries in insertion order in a dict."""

    def __init__(
        self,
        claim_attempts: int = Limits.DEFAULT_CLAIM_ATTEMPTS,
        batch_size: int = Limits.DEFAULT_UPLOAD_BATCH_SIZE,
    ):
        self.claim_attempts = claim_attempts
        self.batch_size = batch_size
        self.logger = get_logger()
        self._lock = threading.Lock()
        self._entries: Dict[int, PoolEntryRead] = {}
        self._next_id = 1

    def enqueue(self, values: Sequence[str]) -> int:
        inserted = 0
        for batch in chunked(list(values), self.batch_size):
            with self._lock:
                now = utc_now()
                for value in batch:
                    self._entries[self._next_id] = PoolEntryRead(
                        id=self._next_id,
                        value=value,
                        status=PoolEntryStatus.UNCLAIMED,
                        created_at=now,
                    )
                    self._next_id += 1
            inserted += len(batch)

        self.logger.info("Pool entries enqueued", extra={"inserted_count": inserted})
        return inserted

    def claim_one(self, claimant_id: str) -> PoolEntryRead:
        after_id = 0

        for attempt in range(1, self.claim_attempts + 1):
            candidate_id = self._next_candidate_id(after_id)
            if candidate_id is None:
                raise NoEntriesAvailableError(
                    "Credential pool is empty", claimant_id=claimant_id, attempt=attempt
                )

            try:
                entry = self._claim_if_unclaimed(candidate_id, claimant_id)
            except ConflictLostError:
                after_id = candidate_id
                continue

            self.logger.info(
                "Pool entry claimed",
                extra={"entry_id": entry.id, "claimant_id": claimant_id, "attempt": attempt},
            )
            return entry

        raise NoEntriesAvailableError(
            "Could not claim a pool entry",
            claimant_id=claimant_id,
            attempts=self.claim_attempts,
        )

    def _next_candidate_id(self, after_id: int) -> Optional[int]:
        with self._lock:
            for entry_id, entry in self._entries.items():
                if entry_id > after_id and entry.status == PoolEntryStatus.UNCLAIMED:
                    return entry_id
        return None

    def _claim_if_unclaimed(self, entry_id: int, claimant_id: str) -> PoolEntryRead:
        with self._lock:
            entry = self._entries[entry_id]
            if entry.status != PoolEntryStatus.UNCLAIMED:
                raise ConflictLostError(entry_id=entry_id, claimant_id=claimant_id)

            claimed = entry.model_copy(
                update={
                    "status": PoolEntryStatus.CLAIMED,
                    "claimed_by": claimant_id,
                    "claimed_at": utc_now(),
                }
            )
            self._entries[entry_id] = claimed
            return claimed

    def count_unclaimed(self) -> int:
        with self._lock:
            return sum(
                1 for entry in self._entries.values() if entry.status == PoolEntryStatus.UNCLAIMED
            )

    def get_entry(self, entry_id: int) -> Optional[PoolEntryRead]:
        with self._lock:
            return self._entries.get(entry_id)


class InMemoryTokenLedger(TokenLedger):
    """Ledger keeping token records and open history in dicts."""

    def __init__(self):
        self.logger = get_logger()
        self._lock = threading.Lock()
        self._tokens: Dict[str, AccessTokenRead] = {}
        self._opens: Dict[str, List[TokenOpenRead]] = {}
        self._next_open_id = 1

    def insert(self, record: AccessTokenCreate) -> AccessTokenRead:
        with self._lock:
            if record.token in self._tokens:
                raise DuplicateTokenError(
                    f"Token already exists: {record.token}", token=record.token
                )

            stored = AccessTokenRead(
                token=record.token,
                login=record.login,
                secret=record.secret,
                owner_id=record.owner_id,
                owner_handle=record.owner_handle,
                pool_entry_id=record.pool_entry_id,
                status=TokenStatus.ACTIVE,
                created_at=record.created_at or utc_now(),
            )
            self._tokens[record.token] = stored

        self.logger.info(
            "Token recorded",
            extra={"token": stored.token, "owner_id": stored.owner_id, "login": stored.login},
        )
        return stored

    def get(self, token: str) -> Optional[AccessTokenRead]:
        with self._lock:
            return self._tokens.get(token)

    def revoke(self, token: str, by_actor: str) -> Optional[AccessTokenRead]:
        with self._lock:
            stored = self._tokens.get(token)
            if stored is None or stored.status == TokenStatus.REVOKED:
                return stored

            stored = stored.model_copy(
                update={
                    "status": TokenStatus.REVOKED,
                    "revoked_at": utc_now(),
                    "revoked_by": by_actor,
                }
            )
            self._tokens[token] = stored

        self.logger.info("Token revoked", extra={"token": token, "by_actor": by_actor})
        return stored

    def _newest_first(self, records: List[AccessTokenRead]) -> List[AccessTokenRead]:
        records = sorted(records, key=lambda r: r.token)
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def list_recent(self, limit: int, active_only: bool = False) -> List[AccessTokenRead]:
        with self._lock:
            records = list(self._tokens.values())
        if active_only:
            records = [r for r in records if r.is_active]
        return self._newest_first(records)[:limit]

    def search_by_owner(self, query: str, limit: int = 50) -> List[AccessTokenRead]:
        needle = normalize_owner_query(query)
        if not needle:
            return []

        with self._lock:
            records = [
                r
                for r in self._tokens.values()
                if needle in r.owner_id.lower() or needle in r.owner_handle.lower()
            ]
        return self._newest_first(records)[:limit]

    def record_access(
        self, token: str, open_info: Optional[TokenOpenInfo] = None
    ) -> Optional[AccessTokenRead]:
        now = utc_now()
        with self._lock:
            stored = self._tokens.get(token)
            if stored is None or not stored.is_active:
                return stored

            stored = stored.model_copy(
                update={"access_count": stored.access_count + 1, "last_access_at": now}
            )
            self._tokens[token] = stored

            if open_info is not None:
                self._opens.setdefault(token, []).append(
                    TokenOpenRead(
                        id=self._next_open_id, token=token, opened_at=now, **open_info.model_dump()
                    )
                )
                self._next_open_id += 1
            return stored

    def count_opens(self, token: str) -> int:
        with self._lock:
            return len(self._opens.get(token, []))

    def list_opens(self, token: str, limit: int = 5) -> List[TokenOpenRead]:
        with self._lock:
            opens = list(self._opens.get(token, []))
        return sorted(opens, key=lambda o: (o.opened_at, o.id), reverse=True)[:limit]
