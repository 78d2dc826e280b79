"""
Commission ledger.

Turns a verified package purchase into direct and indirect commissions
and credits them to the upline's balances in one unit of work.
"""

from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.config.commission_rates import (
    DEFAULT_RATE_TABLE,
    DIRECT_LEVEL,
    INDIRECT_LEVEL,
    CommissionRateTable,
)
from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.models.commission import Commission
from affiliate_engine.models.enums import CommissionStatus, CommissionType
from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.repositories.commission_repository import (
    CommissionRepository,
)
from affiliate_engine.repositories.referral_repository import ReferralRepository
from affiliate_engine.services.base_service import BaseService
from affiliate_engine.services.commission.types import (
    PurchaseCommissions,
    VerifiedPurchase,
)
from affiliate_engine.services.referral.hierarchy_resolver import HierarchyResolver
from affiliate_engine.utils.db_decorators import with_conflict_retry
from affiliate_engine.utils.exceptions import (
    AffiliateEngineError,
    UnknownTransactionError,
    is_foreign_key_violation,
    is_unique_violation,
)


COMMISSION_TYPES = {
    DIRECT_LEVEL: CommissionType.DIRECT_REFERRAL,
    INDIRECT_LEVEL: CommissionType.INDIRECT_REFERRAL,
}


class CommissionLedger(BaseService):
    """
    Commission ledger.

    The only writer of Commission rows and of affiliate earnings.
    Processing a purchase is idempotent: the (transaction_id, level)
    unique index guarantees at most one commission per level, and a
    repeat call returns the existing rows with already_processed=True.
    """

    def __init__(
        self,
        session: AsyncSession,
        rate_table: CommissionRateTable = DEFAULT_RATE_TABLE,
    ) -> None:
        """
        Initialize commission ledger.

        Args:
            session: Async database session
            rate_table: Commission rate lookup
        """
        super().__init__(session)
        self.rate_table = rate_table
        self.resolver = HierarchyResolver(session)
        self.affiliate_repo = AffiliateRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.referral_repo = ReferralRepository(session)

    @with_conflict_retry
    async def process_purchase(
        self, transaction_id: int, purchaser_affiliate_id: int
    ) -> PurchaseCommissions:
        """
        Generate commissions for a completed purchase.

        Args:
            transaction_id: Verified purchase transaction ID
            purchaser_affiliate_id: Affiliate that made the purchase

        Returns:
            PurchaseCommissions with the direct and indirect rows
            (either may be None)

        Raises:
            UnknownAffiliateError: Purchaser does not exist
            UnknownTransactionError: transaction_id matches no transaction
            RateUndefinedError: Rate table has no entry for the tiers
            ConcurrencyConflictError: Contention retries exhausted
        """
        try:
            result = await self._process(transaction_id, purchaser_affiliate_id)
            await self.commit()
        except IntegrityError as e:
            await self.rollback()
            if is_foreign_key_violation(e):
                error = UnknownTransactionError(transaction_id)
                self.logger.warning(
                    "Purchase processing rejected",
                    extra=error.to_log_extra(),
                )
                raise error from e
            if not is_unique_violation(e):
                raise

            # Another worker committed this purchase first
            existing = await self.commission_repo.find_by_transaction(
                transaction_id
            )
            if not existing:
                raise

            self.logger.info(
                "Purchase processed concurrently, returning winner's rows",
                extra={"transaction_id": transaction_id},
            )
            return self._to_result(existing, already_processed=True)
        except AffiliateEngineError as e:
            await self.rollback()
            self.logger.warning(
                "Purchase processing rejected",
                extra={"transaction_id": transaction_id, **e.to_log_extra()},
            )
            raise
        except Exception:
            await self.rollback()
            raise

        if not result.already_processed:
            self.logger.info(
                "Purchase commissions recorded",
                extra={
                    "transaction_id": transaction_id,
                    "purchaser_affiliate_id": purchaser_affiliate_id,
                    "direct_commission_id": (
                        result.direct.id if result.direct else None
                    ),
                    "indirect_commission_id": (
                        result.indirect.id if result.indirect else None
                    ),
                },
            )
        return result

    async def process_verified_purchase(
        self, purchase: VerifiedPurchase
    ) -> PurchaseCommissions:
        """
        Generate commissions for a purchase handed over by the payment flow.

        Args:
            purchase: Verified purchase

        Returns:
            PurchaseCommissions
        """
        return await self.process_purchase(
            purchase.transaction_id, purchase.purchaser_affiliate_id
        )

    async def _process(
        self, transaction_id: int, purchaser_affiliate_id: int
    ) -> PurchaseCommissions:
        existing = await self.commission_repo.find_by_transaction(transaction_id)
        if existing:
            self.logger.debug(
                "Purchase already processed",
                extra={"transaction_id": transaction_id},
            )
            return self._to_result(existing, already_processed=True)

        purchaser = await self.resolver.get_affiliate(purchaser_affiliate_id)
        upline = await self.resolver.resolve_for(purchaser)

        if upline.parent is None:
            return PurchaseCommissions()

        direct = await self._credit(
            transaction_id, purchaser, upline.parent, DIRECT_LEVEL
        )

        indirect = None
        if upline.grandparent is not None:
            indirect = await self._credit(
                transaction_id, purchaser, upline.grandparent, INDIRECT_LEVEL
            )

        return PurchaseCommissions(direct=direct, indirect=indirect)

    async def _credit(
        self,
        transaction_id: int,
        purchaser: Affiliate,
        beneficiary: Affiliate,
        level: int,
    ) -> Commission | None:
        """Record one level's commission and credit it; None for a zero rate."""
        amount = self.rate_table.rate(
            purchaser.package_tier, beneficiary.package_tier, level
        )
        if amount <= 0:
            return None

        commission = await self.commission_repo.create(
            affiliate_id=beneficiary.id,
            from_affiliate_id=purchaser.id,
            transaction_id=transaction_id,
            level=level,
            commission_type=COMMISSION_TYPES[level].value,
            amount=amount,
            status=CommissionStatus.APPROVED.value,
            approved_at=datetime.now(UTC),
        )

        await self.affiliate_repo.credit_commission(beneficiary.id, amount, level)

        if level == DIRECT_LEVEL:
            await self.referral_repo.add_commission_earned(
                beneficiary.id, purchaser.user_id, amount
            )

        return commission

    @staticmethod
    def _to_result(
        commissions: list[Commission], already_processed: bool
    ) -> PurchaseCommissions:
        by_level = {c.level: c for c in commissions}
        return PurchaseCommissions(
            direct=by_level.get(DIRECT_LEVEL),
            indirect=by_level.get(INDIRECT_LEVEL),
            already_processed=already_processed,
        )
