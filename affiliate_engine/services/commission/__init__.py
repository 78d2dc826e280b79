"""
Commission services package.

- ledger: Purchase -> commissions, with balance credits
- status_manager: Payout status transitions
- types: VerifiedPurchase input and PurchaseCommissions result
"""

from affiliate_engine.services.commission.ledger import CommissionLedger
from affiliate_engine.services.commission.status_manager import (
    CommissionStatusManager,
)
from affiliate_engine.services.commission.types import (
    PurchaseCommissions,
    VerifiedPurchase,
)


__all__ = [
    "CommissionLedger",
    "CommissionStatusManager",
    "PurchaseCommissions",
    "VerifiedPurchase",
]
