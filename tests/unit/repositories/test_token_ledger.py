"""
Unit tests for the token ledgers.

Contract tests run against both ledgers through the parametrized ``ledger``
fixture; SQL-only tests seed rows with the factories.
"""

from datetime import timedelta

import pytest

from access_pool_core.db.db_base import utc_now
from access_pool_core.enums import TokenStatus
from access_pool_core.exceptions import DuplicateTokenError
from access_pool_core.schemas.token_schemas import AccessTokenCreate, TokenOpenInfo
from tests.fixtures.factories import (
    AccessTokenFactory,
    FixtureDataGenerator,
    RevokedAccessTokenFactory,
    TokenOpenFactory,
)


def make_record(token, owner_id="200", owner_handle="alice", minutes_ago=0):
    return AccessTokenCreate(
        token=token,
        login=f"login-{token}",
        secret=f"secret-{token}",
        owner_id=owner_id,
        owner_handle=owner_handle,
        pool_entry_id=1,
        created_at=utc_now() - timedelta(minutes=minutes_ago),
    )


class TestInsertAndGet:
    """Test recording issued tokens."""

    def test_insert_returns_active_record(self, ledger):
        stored = ledger.insert(make_record("Tok0000001"))

        assert stored.token == "Tok0000001"
        assert stored.status == TokenStatus.ACTIVE
        assert stored.access_count == 0
        assert stored.created_at.tzinfo is not None

    def test_get_round_trip(self, ledger):
        ledger.insert(make_record("Tok0000001"))

        fetched = ledger.get("Tok0000001")

        assert fetched.login == "login-Tok0000001"
        assert fetched.secret == "secret-Tok0000001"
        assert fetched.owner_handle == "alice"

    def test_get_missing(self, ledger):
        assert ledger.get("nope") is None

    def test_duplicate_token_rejected(self, ledger):
        """The first record wins; a colliding insert changes nothing."""
        ledger.insert(make_record("Tok0000001", owner_id="1"))

        with pytest.raises(DuplicateTokenError):
            ledger.insert(make_record("Tok0000001", owner_id="2"))

        assert ledger.get("Tok0000001").owner_id == "1"


class TestRevoke:
    """Test revocation."""

    def test_revoke_active_token(self, ledger):
        ledger.insert(make_record("Tok0000001"))

        revoked = ledger.revoke("Tok0000001", "100")

        assert revoked.status == TokenStatus.REVOKED
        assert revoked.revoked_by == "100"
        assert revoked.revoked_at is not None
        assert ledger.get("Tok0000001").status == TokenStatus.REVOKED

    def test_revoke_is_idempotent(self, ledger):
        """A second revoke keeps the first revoked_at and revoked_by."""
        ledger.insert(make_record("Tok0000001"))
        first = ledger.revoke("Tok0000001", "100")

        second = ledger.revoke("Tok0000001", "300")

        assert second.revoked_by == "100"
        assert second.revoked_at == first.revoked_at

    def test_revoke_missing_token(self, ledger):
        assert ledger.revoke("nope", "100") is None


class TestListing:
    """Test recent listing and owner search."""

    def test_list_recent_newest_first(self, ledger):
        ledger.insert(make_record("Old0000001", minutes_ago=30))
        ledger.insert(make_record("Mid0000001", minutes_ago=20))
        ledger.insert(make_record("New0000001", minutes_ago=10))

        tokens = [r.token for r in ledger.list_recent(limit=2)]

        assert tokens == ["New0000001", "Mid0000001"]

    def test_list_recent_active_only(self, ledger):
        ledger.insert(make_record("Old0000001", minutes_ago=30))
        ledger.insert(make_record("New0000001", minutes_ago=10))
        ledger.revoke("New0000001", "100")

        tokens = [r.token for r in ledger.list_recent(limit=10, active_only=True)]

        assert tokens == ["Old0000001"]

    def test_search_by_handle_ignores_at_and_case(self, ledger):
        ledger.insert(make_record("Tok0000001", owner_id="501", owner_handle="Alice"))
        ledger.insert(make_record("Tok0000002", owner_id="502", owner_handle="bob"))

        found = ledger.search_by_owner("@ALICE")

        assert [r.token for r in found] == ["Tok0000001"]

    def test_search_by_id_substring(self, ledger):
        ledger.insert(make_record("Tok0000001", owner_id="123456", minutes_ago=5))
        ledger.insert(make_record("Tok0000002", owner_id="993456", minutes_ago=1))
        ledger.insert(make_record("Tok0000003", owner_id="777"))

        found = ledger.search_by_owner("3456")

        assert [r.token for r in found] == ["Tok0000002", "Tok0000001"]

    @pytest.mark.parametrize("query", ["", "   ", "@"])
    def test_blank_search_matches_nothing(self, ledger, query):
        ledger.insert(make_record("Tok0000001"))

        assert ledger.search_by_owner(query) == []


class TestAccessTracking:
    """Test link open bookkeeping."""

    def test_record_access_counts(self, ledger):
        ledger.insert(make_record("Tok0000001"))

        ledger.record_access("Tok0000001")
        updated = ledger.record_access("Tok0000001")

        assert updated.access_count == 2
        assert updated.last_access_at is not None

    def test_record_access_missing(self, ledger):
        assert ledger.record_access("nope", TokenOpenInfo(ip="1.2.3.4")) is None

    def test_open_history_newest_first(self, ledger):
        ledger.insert(make_record("Tok0000001"))
        for ip in ["10.0.0.1", "10.0.0.2", "10.0.0.3"]:
            ledger.record_access("Tok0000001", TokenOpenInfo(ip=ip, platform="Linux"))

        opens = ledger.list_opens("Tok0000001", limit=2)

        assert ledger.count_opens("Tok0000001") == 3
        assert [o.ip for o in opens] == ["10.0.0.3", "10.0.0.2"]
        assert opens[0].platform == "Linux"

    def test_revoked_token_not_counted(self, ledger):
        ledger.insert(make_record("Tok0000001"))
        ledger.revoke("Tok0000001", "100")

        result = ledger.record_access("Tok0000001", TokenOpenInfo(ip="10.0.0.1"))

        assert result.status == TokenStatus.REVOKED
        assert result.access_count == 0
        assert result.last_access_at is None
        assert ledger.count_opens("Tok0000001") == 0

    def test_access_without_details_logs_no_open(self, ledger):
        ledger.insert(make_record("Tok0000001"))

        ledger.record_access("Tok0000001")

        assert ledger.count_opens("Tok0000001") == 0
        assert ledger.list_opens("Tok0000001") == []


class TestSqlTokenLedger:
    """SQL ledger against rows seeded by factories."""

    def test_lists_seeded_tokens_newest_first(self, db_session, sql_ledger):
        tokens = FixtureDataGenerator.tokens_created_minutes_apart(4)

        listed = [r.token for r in sql_ledger.list_recent(limit=3)]

        assert listed == [t.token for t in reversed(tokens)][:3]

    def test_revoked_seed_stays_revoked(self, db_session, sql_ledger):
        row = RevokedAccessTokenFactory.create(revoked_by="900")

        result = sql_ledger.revoke(row.token, "100")

        assert result.status == TokenStatus.REVOKED
        assert result.revoked_by == "900"

    def test_counts_seeded_opens(self, db_session, sql_ledger):
        row = AccessTokenFactory.create()
        TokenOpenFactory.create_batch(3, token=row.token)
        TokenOpenFactory.create(token="someone-else")

        assert sql_ledger.count_opens(row.token) == 3
        assert all(o.token == row.token for o in sql_ledger.list_opens(row.token))
