"""
Commission status management.

Marks credited commissions as paid out. Balances are untouched: the
amount was credited when the commission was approved.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.repositories.commission_repository import (
    CommissionRepository,
)
from affiliate_engine.services.base_service import BaseService, transaction


class CommissionStatusManager(BaseService):
    """Manages commission payout status."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission status manager."""
        super().__init__(session)
        self.commission_repo = CommissionRepository(session)

    @transaction
    async def mark_as_paid(self, commission_ids: list[int]) -> int:
        """
        Move APPROVED commissions to PAID.

        Commissions in any other status are skipped.

        Args:
            commission_ids: Commission IDs

        Returns:
            Number of commissions marked as paid
        """
        updated = await self.commission_repo.mark_paid(list(commission_ids))

        self.logger.info(
            "Commissions marked as paid",
            extra={"requested": len(commission_ids), "updated": updated},
        )
        return updated
