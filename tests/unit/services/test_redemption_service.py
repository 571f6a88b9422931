"""
Unit tests for RedemptionService.
"""

import pytest

from access_pool_core.exceptions import TokenNotFoundError, TokenRevokedError
from access_pool_core.repositories import InMemoryTokenLedger
from access_pool_core.schemas.token_schemas import TokenOpenInfo
from access_pool_core.services import IssuanceService, RedemptionService
from tests.fixtures.doubles import ADMIN_ID, SITE_BASE, RevokedMidwayLedger


@pytest.fixture
def token(issuance_service, memory_pool_store):
    memory_pool_store.enqueue(["u1:p1"])
    return issuance_service.issue("42", "alice").token


class TestResolve:
    def test_active_token_returns_credential(self, redemption_service, token):
        record = redemption_service.resolve(token)

        assert record.login == "u1"
        assert record.secret == "p1"
        assert record.access_count == 1
        assert record.last_access_at is not None

    def test_token_is_stripped(self, redemption_service, token):
        assert redemption_service.resolve(f"  {token} ").token == token

    def test_open_details_recorded(self, redemption_service, memory_ledger, token):
        redemption_service.resolve(token, TokenOpenInfo(ip="203.0.113.7", language="de"))

        opens = memory_ledger.list_opens(token)
        assert opens[0].ip == "203.0.113.7"
        assert opens[0].language == "de"

    @pytest.mark.parametrize("value", ["", "   ", "Nope000000", None])
    def test_unknown_token(self, redemption_service, value):
        with pytest.raises(TokenNotFoundError):
            redemption_service.resolve(value)

    def test_revoked_token(self, redemption_service, admin_service, memory_ledger, token):
        admin_service.revoke(token, ADMIN_ID)

        with pytest.raises(TokenRevokedError) as exc_info:
            redemption_service.resolve(token)

        assert exc_info.value.context["revoked_at"]
        assert memory_ledger.get(token).access_count == 0

    def test_revoked_between_lookup_and_access(self, memory_pool_store):
        """A revoke landing after the read still blocks the credential."""
        memory_pool_store.enqueue(["u1:p1"])
        ledger = RevokedMidwayLedger()
        issued = IssuanceService(memory_pool_store, ledger, SITE_BASE).issue("42")

        with pytest.raises(TokenRevokedError):
            RedemptionService(ledger).resolve(issued.token, TokenOpenInfo(ip="203.0.113.7"))

        stored = InMemoryTokenLedger.get(ledger, issued.token)
        assert stored.access_count == 0
        assert ledger.count_opens(issued.token) == 0
