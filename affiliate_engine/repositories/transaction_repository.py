"""
Transaction repository.

Data access layer for Transaction model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.models.transaction import Transaction
from affiliate_engine.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def find_by_withdrawal(
        self, withdrawal_request_id: int
    ) -> list[Transaction]:
        """Get audit records appended for a withdrawal request."""
        return await self.find_by(withdrawal_request_id=withdrawal_request_id)
