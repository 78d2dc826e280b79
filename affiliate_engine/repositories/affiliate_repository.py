"""
Affiliate repository.

Data access layer for Affiliate model, including the atomic balance
mutations used by the commission ledger and withdrawal reconciler.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.config.commission_rates import DIRECT_LEVEL, INDIRECT_LEVEL
from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.models.user import User
from affiliate_engine.repositories.base import BaseRepository


class AffiliateRepository(BaseRepository[Affiliate]):
    """Affiliate repository with tree and balance queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize affiliate repository."""
        super().__init__(Affiliate, session)

    async def get_by_user_id(self, user_id: int) -> Affiliate | None:
        """
        Get affiliate by owning user.

        Args:
            user_id: User ID

        Returns:
            Affiliate or None
        """
        return await self.get_by(user_id=user_id)

    async def get_active_by_referral_code(
        self, code: str
    ) -> Affiliate | None:
        """
        Get an active affiliate whose owning user is active.

        Args:
            code: Normalized referral code

        Returns:
            Affiliate or None if unknown or inactive
        """
        stmt = (
            select(Affiliate)
            .join(User, User.id == Affiliate.user_id)
            .where(
                Affiliate.referral_code == code,
                Affiliate.is_active.is_(True),
                User.is_active.is_(True),
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def code_exists(self, code: str) -> bool:
        """Check whether a referral code is taken."""
        return await self.exists(referral_code=code)

    async def get_children(
        self, parent_ids: list[int]
    ) -> list[Affiliate]:
        """
        Get direct children of the given affiliates.

        Args:
            parent_ids: Parent affiliate IDs

        Returns:
            Children ordered by ID
        """
        if not parent_ids:
            return []

        stmt = (
            select(Affiliate)
            .where(Affiliate.parent_id.in_(parent_ids))
            .order_by(Affiliate.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def set_parent(self, affiliate_id: int, parent_id: int) -> bool:
        """
        Link affiliate to its referrer.

        Only succeeds while parent_id is still unset.

        Returns:
            True if the link was written
        """
        stmt = (
            update(Affiliate)
            .where(
                Affiliate.id == affiliate_id,
                Affiliate.parent_id.is_(None),
            )
            .values(parent_id=parent_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def credit_commission(
        self, affiliate_id: int, amount: Decimal, level: int
    ) -> None:
        """
        Credit a commission to the affiliate's earnings and balance.

        Applied as a relative delta in SQL.

        Args:
            affiliate_id: Beneficiary affiliate ID
            amount: Commission amount
            level: DIRECT_LEVEL or INDIRECT_LEVEL
        """
        if level == DIRECT_LEVEL:
            earnings_column = Affiliate.total_direct_earnings
        elif level == INDIRECT_LEVEL:
            earnings_column = Affiliate.total_indirect_earnings
        else:
            raise ValueError(f"Unsupported commission level: {level}")

        stmt = (
            update(Affiliate)
            .where(Affiliate.id == affiliate_id)
            .values(
                {
                    earnings_column: earnings_column + amount,
                    Affiliate.current_balance: Affiliate.current_balance + amount,
                }
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def debit_withdrawal(
        self, affiliate_id: int, amount: Decimal
    ) -> bool:
        """
        Debit a withdrawal if the balance covers it.

        Single conditional update: the balance check and the decrement
        happen in the same statement.

        Args:
            affiliate_id: Affiliate ID
            amount: Withdrawal amount

        Returns:
            True if debited, False if the balance was insufficient
        """
        stmt = (
            update(Affiliate)
            .where(
                Affiliate.id == affiliate_id,
                Affiliate.current_balance >= amount,
            )
            .values(
                current_balance=Affiliate.current_balance - amount,
                total_withdrawn=Affiliate.total_withdrawn + amount,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0
