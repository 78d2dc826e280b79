"""
Commission repository.

Data access layer for Commission model.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.models.commission import Commission
from affiliate_engine.models.enums import CommissionStatus
from affiliate_engine.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with ledger and reporting queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def find_by_transaction(
        self, transaction_id: int
    ) -> list[Commission]:
        """
        Get commissions generated by a purchase, ordered by level.

        Args:
            transaction_id: Purchase transaction ID

        Returns:
            Zero, one or two commissions
        """
        stmt = (
            select(Commission)
            .where(Commission.transaction_id == transaction_id)
            .order_by(Commission.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_affiliate(
        self,
        affiliate_id: int,
        level: int | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Commission]:
        """
        Get commissions earned by an affiliate, newest first.

        Args:
            affiliate_id: Beneficiary affiliate ID
            level: Optional level filter
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            List of commissions
        """
        stmt = select(Commission).where(Commission.affiliate_id == affiliate_id)
        if level is not None:
            stmt = stmt.where(Commission.level == level)

        stmt = stmt.order_by(Commission.created_at.desc(), Commission.id.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_affiliate(
        self, affiliate_id: int, level: int | None = None
    ) -> int:
        """Count commissions earned by an affiliate."""
        if level is None:
            return await self.count(affiliate_id=affiliate_id)
        return await self.count(affiliate_id=affiliate_id, level=level)

    async def sum_by_affiliate(
        self, affiliate_id: int, statuses: frozenset[str]
    ) -> Decimal:
        """
        Sum commission amounts for an affiliate in the given statuses.

        Args:
            affiliate_id: Beneficiary affiliate ID
            statuses: Status values to include

        Returns:
            Total amount (0 if none)
        """
        stmt = select(func.coalesce(func.sum(Commission.amount), 0)).where(
            Commission.affiliate_id == affiliate_id,
            Commission.status.in_(statuses),
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def mark_paid(self, commission_ids: list[int]) -> int:
        """
        Move APPROVED commissions to PAID.

        Args:
            commission_ids: Commission IDs

        Returns:
            Number of commissions updated
        """
        if not commission_ids:
            return 0

        now = datetime.now(UTC)
        stmt = (
            update(Commission)
            .where(
                Commission.id.in_(commission_ids),
                Commission.status == CommissionStatus.APPROVED.value,
            )
            .values(
                status=CommissionStatus.PAID.value,
                paid_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
