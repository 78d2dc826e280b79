"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.models.base import Base
from affiliate_engine.models.commission import Commission
from affiliate_engine.models.enums import (
    CommissionStatus,
    CommissionType,
    PackageTier,
    ReferralStatus,
    TransactionStatus,
    TransactionType,
    WithdrawalStatus,
)
from affiliate_engine.models.referral import Referral
from affiliate_engine.models.transaction import Transaction
from affiliate_engine.models.user import User
from affiliate_engine.models.withdrawal_request import WithdrawalRequest

__all__ = [
    # Base
    "Base",
    # Enums
    "CommissionStatus",
    "CommissionType",
    "PackageTier",
    "ReferralStatus",
    "TransactionStatus",
    "TransactionType",
    "WithdrawalStatus",
    # Models
    "Affiliate",
    "Commission",
    "Referral",
    "Transaction",
    "User",
    "WithdrawalRequest",
]
