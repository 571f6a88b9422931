"""
SQLAlchemy credential pool store.

Claiming never takes an in-process lock. Exclusivity comes from a conditional
update that only matches while the entry is still unclaimed; the affected
row count tells the caller whether it won. Requests served by separate
processes therefore coordinate through the database alone.
"""

from typing import Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import sessionmaker

from ..constants import Limits
from ..db.db_base import utc_now
from ..db.db_pool_models import PoolEntry
from ..enums import PoolEntryStatus
from ..exceptions import (
    ConflictLostError,
    NoEntriesAvailableError,
    PoolUploadError,
    StorageTransientError,
)
from ..schemas.pool_schemas import PoolEntryRead
from ..utils.credential_utils import chunked
from .base_repository import PoolStore, SqlRepository


class SqlPoolStore(SqlRepository, PoolStore):
    """Pool store backed by the ``pool_entries`` table."""

    entity_name = "PoolEntry"

    def __init__(
        self,
        session_factory: sessionmaker,
        claim_attempts: int = Limits.DEFAULT_CLAIM_ATTEMPTS,
        batch_size: int = Limits.DEFAULT_UPLOAD_BATCH_SIZE,
    ):
        """
        Args:
            session_factory: Factory producing a fresh Session per operation
            claim_attempts: Conditional updates tried before giving up
            batch_size: Rows per insert statement during enqueue
        """
        super().__init__(session_factory)
        self.claim_attempts = claim_attempts
        self.batch_size = batch_size

    def enqueue(self, values: Sequence[str]) -> int:
        values = list(values)
        inserted = 0

        for batch_index, batch in enumerate(chunked(values, self.batch_size)):
            try:
                with self._session_scope("enqueue", batch_index=batch_index) as session:
                    session.add_all(
                        [
                            PoolEntry(value=value, status=PoolEntryStatus.UNCLAIMED.value)
                            for value in batch
                        ]
                    )
                    session.commit()
            except StorageTransientError as e:
                raise PoolUploadError(
                    f"Pool upload failed at batch {batch_index}",
                    batch_index=batch_index,
                    inserted_count=inserted,
                    batch_size=len(batch),
                    cause=e,
                ) from e
            inserted += len(batch)

        self.logger.info(
            "Pool entries enqueued",
            extra={"inserted_count": inserted, "batch_size": self.batch_size},
        )
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
                # Lost the race; the winner owns it, move past it
                after_id = candidate_id
                continue

            self.logger.info(
                "Pool entry claimed",
                extra={"entry_id": entry.id, "claimant_id": claimant_id, "attempt": attempt},
            )
            return entry

        self.logger.warning(
            "Claim attempts exhausted",
            extra={"claimant_id": claimant_id, "attempts": self.claim_attempts},
        )
        raise NoEntriesAvailableError(
            "Could not claim a pool entry",
            claimant_id=claimant_id,
            attempts=self.claim_attempts,
        )

    def _next_candidate_id(self, after_id: int) -> Optional[int]:
        with self._session_scope("next_candidate", after_id=after_id) as session:
            return session.execute(
                select(PoolEntry.id)
                .where(
                    PoolEntry.status == PoolEntryStatus.UNCLAIMED.value,
                    PoolEntry.id > after_id,
                )
                .order_by(PoolEntry.id.asc())
                .limit(1)
            ).scalar()

    def _claim_if_unclaimed(self, entry_id: int, claimant_id: str) -> PoolEntryRead:
        """
        Compare-and-set the entry to claimed.

        Raises:
            ConflictLostError: The entry was no longer unclaimed
        """
        with self._session_scope("claim_one", entry_id=entry_id) as session:
            result = session.execute(
                update(PoolEntry)
                .where(
                    PoolEntry.id == entry_id,
                    PoolEntry.status == PoolEntryStatus.UNCLAIMED.value,
                )
                .values(
                    status=PoolEntryStatus.CLAIMED.value,
                    claimed_by=claimant_id,
                    claimed_at=utc_now(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ConflictLostError(entry_id=entry_id, claimant_id=claimant_id)

            entry = PoolEntryRead.model_validate(session.get(PoolEntry, entry_id))
            session.commit()
            return entry

    def count_unclaimed(self) -> int:
        with self._session_scope("count_unclaimed") as session:
            return session.execute(
                select(func.count(PoolEntry.id)).where(
                    PoolEntry.status == PoolEntryStatus.UNCLAIMED.value
                )
            ).scalar_one()

    def get_entry(self, entry_id: int) -> Optional[PoolEntryRead]:
        with self._session_scope("get_entry", entry_id=entry_id) as session:
            entry = session.get(PoolEntry, entry_id)
            return PoolEntryRead.model_validate(entry) if entry else None

