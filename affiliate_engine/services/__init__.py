"""
Engine services.

Public entry points of the affiliate commission and hierarchy engine.
"""

from affiliate_engine.services.commission import (
    CommissionLedger,
    CommissionStatusManager,
    PurchaseCommissions,
    VerifiedPurchase,
)
from affiliate_engine.services.referral import (
    AffiliateHierarchy,
    AffiliateStatisticsManager,
    BalanceReconciliation,
    CommissionHistoryPage,
    CommissionStats,
    HierarchyResolver,
    ReferralRegistrar,
    Upline,
)
from affiliate_engine.services.withdrawal import (
    WithdrawalReconciler,
    WithdrawalRequestHandler,
)


__all__ = [
    "AffiliateHierarchy",
    "AffiliateStatisticsManager",
    "BalanceReconciliation",
    "CommissionHistoryPage",
    "CommissionLedger",
    "CommissionStats",
    "CommissionStatusManager",
    "HierarchyResolver",
    "PurchaseCommissions",
    "ReferralRegistrar",
    "Upline",
    "VerifiedPurchase",
    "WithdrawalReconciler",
    "WithdrawalRequestHandler",
]
