"""
Withdrawal request handling module.

Validates and records withdrawal requests. Nothing is debited here;
the balance moves when the request is approved.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.config.settings import settings
from affiliate_engine.models.enums import WithdrawalStatus
from affiliate_engine.models.withdrawal_request import WithdrawalRequest
from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from affiliate_engine.services.base_service import BaseService, transaction
from affiliate_engine.utils.exceptions import (
    InsufficientBalanceError,
    InvalidWithdrawalAmountError,
    PendingWithdrawalExistsError,
    UnknownAffiliateError,
)


OPEN_STATUSES = frozenset({WithdrawalStatus.PENDING.value})


class WithdrawalRequestHandler(BaseService):
    """Handles withdrawal request creation and validation."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal request handler."""
        super().__init__(session)
        self.affiliate_repo = AffiliateRepository(session)
        self.withdrawal_repo = WithdrawalRequestRepository(session)

    @transaction
    async def request_withdrawal(
        self, user_id: int, amount: Decimal
    ) -> WithdrawalRequest:
        """
        Create a PENDING withdrawal request.

        Args:
            user_id: Requesting user ID
            amount: Requested amount (INR)

        Returns:
            Created WithdrawalRequest

        Raises:
            InvalidWithdrawalAmountError: Not positive or below the minimum
            UnknownAffiliateError: User has no affiliate record
            InsufficientBalanceError: Amount exceeds current balance
            PendingWithdrawalExistsError: User already has an open request
        """
        amount = Decimal(str(amount))

        if amount <= 0:
            raise InvalidWithdrawalAmountError(
                "Withdrawal amount must be positive", amount
            )
        if amount < settings.min_withdrawal_amount:
            raise InvalidWithdrawalAmountError(
                f"Minimum withdrawal amount is {settings.min_withdrawal_amount}",
                amount,
            )

        affiliate = await self.affiliate_repo.get_by_user_id(user_id)
        if affiliate is None:
            raise UnknownAffiliateError(user_id=user_id)
        await self.refresh(affiliate)

        if amount > affiliate.current_balance:
            raise InsufficientBalanceError(
                affiliate.id, amount, affiliate.current_balance
            )

        existing = await self.withdrawal_repo.get_open_for_user(
            user_id, OPEN_STATUSES
        )
        if existing is not None:
            raise PendingWithdrawalExistsError(user_id, existing.id)

        withdrawal = await self.withdrawal_repo.create(
            user_id=user_id,
            amount=amount,
            status=WithdrawalStatus.PENDING.value,
        )

        self.logger.info(
            "Withdrawal requested",
            extra={"withdrawal_id": withdrawal.id, "affiliate_id": affiliate.id},
        )
        return withdrawal
