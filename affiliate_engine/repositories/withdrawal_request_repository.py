"""
WithdrawalRequest repository.

Data access layer for WithdrawalRequest model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.models.withdrawal_request import WithdrawalRequest
from affiliate_engine.repositories.base import BaseRepository


class WithdrawalRequestRepository(BaseRepository[WithdrawalRequest]):
    """WithdrawalRequest repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal request repository."""
        super().__init__(WithdrawalRequest, session)

    async def get_open_for_user(
        self, user_id: int, statuses: frozenset[str]
    ) -> WithdrawalRequest | None:
        """
        Get the user's oldest request in one of the given statuses.

        Args:
            user_id: User ID
            statuses: Status values considered open

        Returns:
            Request or None
        """
        stmt = (
            select(WithdrawalRequest)
            .where(
                WithdrawalRequest.user_id == user_id,
                WithdrawalRequest.status.in_(statuses),
            )
            .order_by(WithdrawalRequest.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def sum_by_user(
        self, user_id: int, statuses: frozenset[str]
    ) -> Decimal:
        """Sum request amounts for a user in the given statuses."""
        stmt = select(func.coalesce(func.sum(WithdrawalRequest.amount), 0)).where(
            WithdrawalRequest.user_id == user_id,
            WithdrawalRequest.status.in_(statuses),
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
