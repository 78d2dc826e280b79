"""
Pytest configuration and shared fixtures for all tests.

Provides:
- In-memory SQLite database, recreated for every test
- Session and session maker fixtures
- Factories for users, affiliates, purchases and withdrawal requests
"""

# Environment must be set before affiliate_engine.config.settings is imported
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("RETRY_DELAY_BASE", "0")

import itertools
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from affiliate_engine.config.commission_rates import get_package
from affiliate_engine.models import (
    Affiliate,
    Base,
    PackageTier,
    Referral,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    WithdrawalRequest,
    WithdrawalStatus,
)


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with all tables."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        # SQLite leaves foreign keys off unless asked per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session maker bound to the test database."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the test and the services under test."""
    async with session_maker() as test_session:
        yield test_session


@pytest.fixture
def make_user(session: AsyncSession):
    """Factory creating committed users."""
    counter = itertools.count(1)

    async def _make_user(
        name: str | None = "Test User",
        email: str | None = None,
        is_active: bool = True,
    ) -> User:
        n = next(counter)
        user = User(
            name=name,
            email=email or f"user{n}@example.com",
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        return user

    return _make_user


@pytest.fixture
def make_affiliate(session: AsyncSession, make_user):
    """
    Factory creating committed affiliates.

    When parent is given the referral edge is created too, the same
    way the registrar records it.
    """
    counter = itertools.count(1)

    async def _make_affiliate(
        tier: PackageTier = PackageTier.SILVER,
        parent: Affiliate | None = None,
        name: str | None = None,
        referral_code: str | None = None,
        current_balance: Decimal = Decimal("0"),
        is_active: bool = True,
        user_is_active: bool = True,
    ) -> Affiliate:
        n = next(counter)
        user = await make_user(
            name=name or f"Affiliate {n}", is_active=user_is_active
        )
        affiliate = Affiliate(
            user_id=user.id,
            referral_code=referral_code or f"TST{1000 + n}",
            parent_id=parent.id if parent else None,
            package_tier=PackageTier(tier).value,
            is_active=is_active,
            current_balance=current_balance,
        )
        session.add(affiliate)
        await session.flush()

        if parent is not None:
            session.add(
                Referral(affiliate_id=parent.id, referred_user_id=user.id)
            )

        await session.commit()
        return affiliate

    return _make_affiliate


@pytest.fixture
def make_purchase(session: AsyncSession):
    """Factory creating verified package purchase transactions."""

    async def _make_purchase(
        affiliate: Affiliate, tier: PackageTier | None = None
    ) -> Transaction:
        tier = PackageTier(tier or affiliate.package_tier)
        purchase = Transaction(
            user_id=affiliate.user_id,
            type=TransactionType.PACKAGE_PURCHASE.value,
            status=TransactionStatus.SUCCESS.value,
            amount=get_package(tier).price,
            package_tier=tier.value,
        )
        session.add(purchase)
        await session.commit()
        return purchase

    return _make_purchase


@pytest.fixture
def make_withdrawal(session: AsyncSession):
    """Factory creating withdrawal requests directly (no intake checks)."""

    async def _make_withdrawal(
        affiliate: Affiliate,
        amount: Decimal,
        status: WithdrawalStatus = WithdrawalStatus.PENDING,
    ) -> WithdrawalRequest:
        withdrawal = WithdrawalRequest(
            user_id=affiliate.user_id,
            amount=Decimal(amount),
            status=status.value,
        )
        session.add(withdrawal)
        await session.commit()
        return withdrawal

    return _make_withdrawal
