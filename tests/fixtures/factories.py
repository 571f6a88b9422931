"""
Factory Boy factories for pool and ledger rows.

Used to put rows straight into the database when a test needs state the
stores would not produce on their own, such as tokens with chosen creation
times.
"""

from datetime import timedelta

import factory

from access_pool_core.db import AccessToken, PoolEntry, TokenOpen, utc_now
from access_pool_core.enums import PoolEntryStatus, TokenStatus
from access_pool_core.utils.token_utils import generate_token

# ==================== BASE FACTORIES ====================


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base factory with common patterns."""

    class Meta:
        abstract = True
        sqlalchemy_session_persistence = "commit"


# ==================== POOL FACTORIES ====================


class PoolEntryFactory(BaseFactory):
    """Unclaimed `login:secret` line."""

    class Meta:
        model = PoolEntry

    value = factory.Sequence(lambda n: f"user{n}:secret{n}")
    status = PoolEntryStatus.UNCLAIMED.value
    created_at = factory.LazyFunction(utc_now)


class ClaimedPoolEntryFactory(PoolEntryFactory):
    status = PoolEntryStatus.CLAIMED.value
    claimed_by = "someone-else"
    claimed_at = factory.LazyFunction(utc_now)


# ==================== TOKEN FACTORIES ====================


class AccessTokenFactory(BaseFactory):
    """Active token with a credential and an owner."""

    class Meta:
        model = AccessToken

    token = factory.LazyFunction(generate_token)
    login = factory.Sequence(lambda n: f"login{n}")
    secret = factory.Sequence(lambda n: f"secret{n}")
    owner_id = factory.Sequence(lambda n: str(5000 + n))
    owner_handle = factory.Sequence(lambda n: f"owner_{n}")
    status = TokenStatus.ACTIVE.value
    access_count = 0
    created_at = factory.LazyFunction(utc_now)


class RevokedAccessTokenFactory(AccessTokenFactory):
    status = TokenStatus.REVOKED.value
    revoked_by = "100"
    revoked_at = factory.LazyFunction(utc_now)


class TokenOpenFactory(BaseFactory):
    class Meta:
        model = TokenOpen

    token = factory.LazyFunction(generate_token)
    opened_at = factory.LazyFunction(utc_now)
    ip = "203.0.113.7"
    platform = "Linux"
    language = "en-US"
    screen = "1920x1080"
    timezone = "Europe/Berlin"


# ==================== FACTORY CONFIGURATION ====================


def configure_factories(session):
    """Configure all factories to use the provided session."""
    factories = [
        PoolEntryFactory,
        ClaimedPoolEntryFactory,
        AccessTokenFactory,
        RevokedAccessTokenFactory,
        TokenOpenFactory,
    ]

    for factory_class in factories:
        factory_class._meta.sqlalchemy_session = session


# ==================== FIXTURE DATA GENERATORS ====================


class FixtureDataGenerator:
    """Helper class for generating structured test data."""

    @staticmethod
    def tokens_created_minutes_apart(count: int, **kwargs):
        """Tokens whose created_at is one minute apart, oldest first."""
        start = utc_now() - timedelta(minutes=count)
        return [
            AccessTokenFactory.create(created_at=start + timedelta(minutes=i), **kwargs)
            for i in range(count)
        ]
