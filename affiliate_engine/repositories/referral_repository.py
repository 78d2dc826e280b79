"""
Referral repository.

Data access layer for Referral model.
"""

from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.models.referral import Referral
from affiliate_engine.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_referred_user(
        self, referred_user_id: int
    ) -> Referral | None:
        """Get the edge that brought referred_user_id in, if any."""
        return await self.get_by(referred_user_id=referred_user_id)

    async def count_by_affiliate(self, affiliate_id: int) -> int:
        """Count users referred by affiliate_id."""
        return await self.count(affiliate_id=affiliate_id)

    async def add_commission_earned(
        self, affiliate_id: int, referred_user_id: int, amount: Decimal
    ) -> None:
        """
        Accumulate a direct commission on the referrer -> user edge.

        Args:
            affiliate_id: Referrer affiliate ID
            referred_user_id: Purchasing user ID
            amount: Commission amount
        """
        stmt = (
            update(Referral)
            .where(
                Referral.affiliate_id == affiliate_id,
                Referral.referred_user_id == referred_user_id,
            )
            .values(commission_earned=Referral.commission_earned + amount)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
