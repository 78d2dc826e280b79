"""
Affiliate statistics module.

Read side for dashboards: earnings summary, paginated commission
history and a balance audit against the ledger.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.config.commission_rates import DIRECT_LEVEL, INDIRECT_LEVEL
from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.models.commission import Commission
from affiliate_engine.models.enums import (
    CREDITED_COMMISSION_STATUSES,
    DEBIT_WITHDRAWAL_STATUSES,
)
from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.repositories.commission_repository import (
    CommissionRepository,
)
from affiliate_engine.repositories.referral_repository import ReferralRepository
from affiliate_engine.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)
from affiliate_engine.utils.exceptions import UnknownAffiliateError


@dataclass
class CommissionStats:
    """Earnings summary for an affiliate."""

    total_direct: Decimal
    total_indirect: Decimal
    total_earnings: Decimal
    current_balance: Decimal
    total_withdrawn: Decimal
    total_referrals: int
    direct_commissions: list[Commission] = field(default_factory=list)
    indirect_commissions: list[Commission] = field(default_factory=list)


@dataclass
class CommissionHistoryPage:
    """One page of an affiliate's commissions, newest first."""

    items: list[Commission]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        """Number of pages available."""
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass
class BalanceReconciliation:
    """Stored balance compared with the ledger."""

    affiliate_id: int
    credited: Decimal
    debited: Decimal
    expected_balance: Decimal
    actual_balance: Decimal

    @property
    def is_consistent(self) -> bool:
        """True when current_balance matches credited minus debited."""
        return self.expected_balance == self.actual_balance


class AffiliateStatisticsManager:
    """Manages affiliate statistics and analytics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        self.session = session
        self.affiliate_repo = AffiliateRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.withdrawal_repo = WithdrawalRequestRepository(session)

    async def _get_affiliate(self, affiliate_id: int) -> Affiliate:
        affiliate = await self.affiliate_repo.get_by_id(affiliate_id)
        if affiliate is None:
            raise UnknownAffiliateError(affiliate_id)
        await self.session.refresh(affiliate)
        return affiliate

    async def get_commission_stats(self, affiliate_id: int) -> CommissionStats:
        """
        Get earnings summary for affiliate.

        Args:
            affiliate_id: Affiliate ID

        Returns:
            CommissionStats with totals and both commission lists

        Raises:
            UnknownAffiliateError: affiliate_id does not exist
        """
        affiliate = await self._get_affiliate(affiliate_id)

        direct = await self.commission_repo.find_by_affiliate(
            affiliate_id, level=DIRECT_LEVEL
        )
        indirect = await self.commission_repo.find_by_affiliate(
            affiliate_id, level=INDIRECT_LEVEL
        )
        total_referrals = await self.referral_repo.count_by_affiliate(
            affiliate_id
        )

        return CommissionStats(
            total_direct=affiliate.total_direct_earnings,
            total_indirect=affiliate.total_indirect_earnings,
            total_earnings=affiliate.total_earnings,
            current_balance=affiliate.current_balance,
            total_withdrawn=affiliate.total_withdrawn,
            total_referrals=total_referrals,
            direct_commissions=direct,
            indirect_commissions=indirect,
        )

    async def get_commission_history(
        self,
        affiliate_id: int,
        page: int = 1,
        limit: int = 20,
        level: int | None = None,
    ) -> CommissionHistoryPage:
        """
        Get paginated commission history, newest first.

        Args:
            affiliate_id: Affiliate ID
            page: Page number (1-indexed)
            limit: Items per page
            level: Optional level filter (1 or 2)

        Returns:
            CommissionHistoryPage
        """
        await self._get_affiliate(affiliate_id)

        page = max(page, 1)
        limit = max(limit, 1)
        items = await self.commission_repo.find_by_affiliate(
            affiliate_id,
            level=level,
            limit=limit,
            offset=(page - 1) * limit,
        )
        total = await self.commission_repo.count_by_affiliate(
            affiliate_id, level=level
        )

        return CommissionHistoryPage(
            items=items, total=total, page=page, limit=limit
        )

    async def reconcile_balance(
        self, affiliate_id: int
    ) -> BalanceReconciliation:
        """
        Audit current_balance against commissions and withdrawals.

        Credited = APPROVED + PAID commissions.
        Debited = APPROVED + COMPLETED withdrawal requests.

        Args:
            affiliate_id: Affiliate ID

        Returns:
            BalanceReconciliation
        """
        affiliate = await self._get_affiliate(affiliate_id)

        credited = await self.commission_repo.sum_by_affiliate(
            affiliate_id, CREDITED_COMMISSION_STATUSES
        )
        debited = await self.withdrawal_repo.sum_by_user(
            affiliate.user_id, DEBIT_WITHDRAWAL_STATUSES
        )

        return BalanceReconciliation(
            affiliate_id=affiliate_id,
            credited=credited,
            debited=debited,
            expected_balance=credited - debited,
            actual_balance=affiliate.current_balance,
        )
