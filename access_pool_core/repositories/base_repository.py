"""
Storage contracts for the credential pool and the token ledger.

The services only ever talk to PoolStore and TokenLedger. Two families of
implementations exist: the SQLAlchemy stores used in deployment and the
in-memory stores used by unit tests and local runs.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, NoReturn, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..exceptions import BaseError, StorageTransientError
from ..schemas.pool_schemas import PoolEntryRead
from ..schemas.token_schemas import (
    AccessTokenCreate,
    AccessTokenRead,
    TokenOpenInfo,
    TokenOpenRead,
)
from ..utils.logger import get_logger


class PoolStore(ABC):
    """Durable FIFO queue of `login:secret` payloads with claim-once semantics."""

    @abstractmethod
    def enqueue(self, values: Sequence[str]) -> int:
        """
        Append unclaimed entries in order, in bounded batches.

        Returns:
            Number of entries inserted

        Raises:
            PoolUploadError: A batch failed; carries batch_index and inserted_count
        """

    @abstractmethod
    def claim_one(self, claimant_id: str) -> PoolEntryRead:
        """
        Claim the oldest unclaimed entry for exactly one caller.

        Raises:
            NoEntriesAvailableError: Pool exhausted or claim attempts used up
            StorageTransientError: Backend failure
        """

    @abstractmethod
    def count_unclaimed(self) -> int:
        """Best-effort live count of unclaimed entries."""

    @abstractmethod
    def get_entry(self, entry_id: int) -> Optional[PoolEntryRead]:
        """Look up an entry by id, claimed or not."""


class TokenLedger(ABC):
    """Durable record of issued tokens."""

    @abstractmethod
    def insert(self, record: AccessTokenCreate) -> AccessTokenRead:
        """
        Persist a newly issued token.

        Raises:
            DuplicateTokenError: The token already exists
            StorageTransientError: Backend failure
        """

    @abstractmethod
    def get(self, token: str) -> Optional[AccessTokenRead]:
        """Fetch a token record or None."""

    @abstractmethod
    def revoke(self, token: str, by_actor: str) -> Optional[AccessTokenRead]:
        """
        Flip a token to revoked.

        Revoking an already revoked token returns the stored record unchanged,
        keeping the first revoked_at and revoked_by. Returns None if the token
        does not exist.
        """

    @abstractmethod
    def list_recent(self, limit: int, active_only: bool = False) -> List[AccessTokenRead]:
        """Newest tokens first by created_at."""

    @abstractmethod
    def search_by_owner(self, query: str, limit: int = 50) -> List[AccessTokenRead]:
        """Case-insensitive substring match on owner id or handle, newest first."""

    @abstractmethod
    def record_access(
        self, token: str, open_info: Optional[TokenOpenInfo] = None
    ) -> Optional[AccessTokenRead]:
        """
        Increment access_count, stamp last_access_at, optionally log the open.

        Only active tokens are counted. A revoked token's record is returned
        unchanged and None is returned for an unknown token.
        """

    @abstractmethod
    def count_opens(self, token: str) -> int:
        """Number of recorded opens for a token."""

    @abstractmethod
    def list_opens(self, token: str, limit: int = 5) -> List[TokenOpenRead]:
        """Most recent opens first."""


class SqlRepository:
    """Session handling and error mapping shared by the SQLAlchemy stores."""

    entity_name = "record"

    def __init__(self, session_factory: sessionmaker):
        """
        Args:
            session_factory: Factory producing a fresh Session per operation
        """
        self.session_factory = session_factory
        self.logger = get_logger()

    def _handle_db_error(self, e: Exception, operation_name: str, **context) -> NoReturn:
        """
        Map a SQLAlchemy failure to StorageTransientError.

        Raises:
            StorageTransientError: Always
        """
        error_context = {
            "operation_name": operation_name,
            "entity_type": self.entity_name,
            **context,
        }
        self.logger.error(
            f"Database error in {operation_name}: {str(e)}",
            extra=error_context,
        )
        raise StorageTransientError(
            f"Database error for {self.entity_name} in {operation_name}",
            cause=e,
            **error_context,
        ) from e

    @contextmanager
    def _session_scope(self, operation_name: str, **context) -> Iterator[Session]:
        """
        One short-lived session per store call.

        Commits are explicit inside the block; anything left uncommitted is
        rolled back when the block exits.
        """
        session = self.session_factory()
        try:
            yield session
        except BaseError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            self._handle_db_error(e, operation_name, **context)
        finally:
            session.close()
