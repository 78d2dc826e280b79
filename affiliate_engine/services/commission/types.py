"""
Commission service types.

Input and result containers for the commission ledger.
"""

from dataclasses import dataclass
from decimal import Decimal

from affiliate_engine.models.commission import Commission
from affiliate_engine.models.enums import PackageTier


@dataclass(frozen=True)
class VerifiedPurchase:
    """
    Purchase whose payment has already been verified upstream.

    The ledger trusts this input completely.
    """

    transaction_id: int
    purchaser_user_id: int
    purchaser_affiliate_id: int
    package_tier: PackageTier
    amount: Decimal


@dataclass
class PurchaseCommissions:
    """
    Commissions generated by one purchase.

    already_processed is True when the purchase had been processed
    before and the rows are returned unchanged.
    """

    direct: Commission | None = None
    indirect: Commission | None = None
    already_processed: bool = False

    @property
    def total_amount(self) -> Decimal:
        """Sum of both commission amounts."""
        return sum(
            (c.amount for c in (self.direct, self.indirect) if c is not None),
            Decimal("0"),
        )
