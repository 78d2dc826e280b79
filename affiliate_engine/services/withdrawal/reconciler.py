"""
Withdrawal reconciliation module.

Applies an admin decision to a withdrawal request. Approval debits the
affiliate balance with a single conditional update and appends an
audit transaction.
"""

from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.models.enums import (
    DEBIT_WITHDRAWAL_STATUSES,
    TransactionStatus,
    TransactionType,
    WithdrawalStatus,
)
from affiliate_engine.models.withdrawal_request import WithdrawalRequest
from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from affiliate_engine.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from affiliate_engine.services.base_service import BaseService, transaction
from affiliate_engine.utils.db_decorators import with_conflict_retry
from affiliate_engine.utils.exceptions import (
    AlreadyProcessedError,
    InsufficientBalanceError,
    InvalidWithdrawalStatusError,
    UnknownAffiliateError,
    UnknownWithdrawalError,
)


# Statuses an admin may move a PENDING request to
TARGET_STATUSES = frozenset({
    WithdrawalStatus.APPROVED,
    WithdrawalStatus.COMPLETED,
    WithdrawalStatus.REJECTED,
    WithdrawalStatus.CANCELLED,
})


class WithdrawalReconciler(BaseService):
    """
    Withdrawal reconciler.

    The only code path that debits current_balance.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize withdrawal reconciler."""
        super().__init__(session)
        self.affiliate_repo = AffiliateRepository(session)
        self.withdrawal_repo = WithdrawalRequestRepository(session)
        self.transaction_repo = TransactionRepository(session)

    @with_conflict_retry
    @transaction
    async def apply_withdrawal(
        self,
        withdrawal_id: int,
        new_status: WithdrawalStatus | str,
        admin_notes: str | None = None,
        processed_by_id: int | None = None,
    ) -> Affiliate:
        """
        Move a PENDING withdrawal request to its final status.

        APPROVED and COMPLETED debit the balance; REJECTED and
        CANCELLED only change the status. Repeating the transition the
        request already went through is a no-op.

        Args:
            withdrawal_id: Withdrawal request ID
            new_status: Target status
            admin_notes: Optional notes from the approver
            processed_by_id: Approver's user ID

        Returns:
            The affiliate with balances as committed

        Raises:
            InvalidWithdrawalStatusError: Unsupported target status
            UnknownWithdrawalError: Request does not exist
            UnknownAffiliateError: Requesting user has no affiliate
            AlreadyProcessedError: Request is no longer PENDING
            InsufficientBalanceError: Balance does not cover the amount
            ConcurrencyConflictError: Contention retries exhausted
        """
        target = self._parse_status(new_status)

        withdrawal = await self.withdrawal_repo.get_by_id(
            withdrawal_id, for_update=True
        )
        if withdrawal is None:
            raise UnknownWithdrawalError(withdrawal_id)

        affiliate = await self.affiliate_repo.get_by_user_id(withdrawal.user_id)
        if affiliate is None:
            raise UnknownAffiliateError(user_id=withdrawal.user_id)

        if withdrawal.status != WithdrawalStatus.PENDING.value:
            if withdrawal.status == target.value:
                self.logger.info(
                    "Withdrawal transition already applied",
                    extra={"withdrawal_id": withdrawal.id, "status": target.value},
                )
                await self.refresh(affiliate)
                return affiliate
            raise AlreadyProcessedError(
                "WithdrawalRequest", withdrawal.id, withdrawal.status
            )

        if target.value in DEBIT_WITHDRAWAL_STATUSES:
            await self._debit(affiliate, withdrawal, target)

        withdrawal.status = target.value
        withdrawal.processed_at = datetime.now(UTC)
        withdrawal.admin_notes = admin_notes
        withdrawal.processed_by_id = processed_by_id
        await self.session.flush()

        await self.refresh(affiliate)

        self.logger.info(
            "Withdrawal processed",
            extra={
                "withdrawal_id": withdrawal.id,
                "affiliate_id": affiliate.id,
                "status": target.value,
                "processed_by_id": processed_by_id,
            },
        )
        return affiliate

    async def _debit(
        self,
        affiliate: Affiliate,
        withdrawal: WithdrawalRequest,
        target: WithdrawalStatus,
    ) -> None:
        debited = await self.affiliate_repo.debit_withdrawal(
            affiliate.id, withdrawal.amount
        )
        if not debited:
            await self.refresh(affiliate)
            raise InsufficientBalanceError(
                affiliate.id, withdrawal.amount, affiliate.current_balance
            )

        await self.transaction_repo.create(
            user_id=withdrawal.user_id,
            type=TransactionType.WITHDRAWAL.value,
            amount=-withdrawal.amount,
            status=(
                TransactionStatus.SUCCESS.value
                if target == WithdrawalStatus.COMPLETED
                else TransactionStatus.PENDING.value
            ),
            withdrawal_request_id=withdrawal.id,
            description=f"Withdrawal request #{withdrawal.id} {target.value.lower()}",
        )

    @staticmethod
    def _parse_status(new_status: WithdrawalStatus | str) -> WithdrawalStatus:
        try:
            status = WithdrawalStatus(new_status)
        except ValueError as e:
            raise InvalidWithdrawalStatusError(new_status) from e

        if status not in TARGET_STATUSES:
            raise InvalidWithdrawalStatusError(new_status)
        return status
