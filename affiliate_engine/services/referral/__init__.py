"""
Referral services package.

Contains modular services for the referral hierarchy:
- config: Configuration constants (REFERRAL_DEPTH, code format)
- hierarchy_resolver: Upline/downline resolution (two hops)
- registrar: Affiliate creation and referrer linking
- statistics: Earnings summary, history and balance audit
"""

from affiliate_engine.services.referral.config import REFERRAL_DEPTH
from affiliate_engine.services.referral.hierarchy_resolver import (
    AffiliateHierarchy,
    HierarchyResolver,
    Upline,
)
from affiliate_engine.services.referral.registrar import (
    ReferralRegistrar,
    generate_referral_code,
    normalize_referral_code,
)
from affiliate_engine.services.referral.statistics import (
    AffiliateStatisticsManager,
    BalanceReconciliation,
    CommissionHistoryPage,
    CommissionStats,
)


__all__ = [
    # Configuration
    "REFERRAL_DEPTH",
    # Hierarchy
    "AffiliateHierarchy",
    "HierarchyResolver",
    "Upline",
    # Registration
    "ReferralRegistrar",
    "generate_referral_code",
    "normalize_referral_code",
    # Statistics
    "AffiliateStatisticsManager",
    "BalanceReconciliation",
    "CommissionHistoryPage",
    "CommissionStats",
]
