"""
Repositories.

Data access layer for all models.
"""

from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.repositories.base import BaseRepository
from affiliate_engine.repositories.commission_repository import (
    CommissionRepository,
)
from affiliate_engine.repositories.referral_repository import ReferralRepository
from affiliate_engine.repositories.transaction_repository import (
    TransactionRepository,
)
from affiliate_engine.repositories.user_repository import UserRepository
from affiliate_engine.repositories.withdrawal_request_repository import (
    WithdrawalRequestRepository,
)

__all__ = [
    "AffiliateRepository",
    "BaseRepository",
    "CommissionRepository",
    "ReferralRepository",
    "TransactionRepository",
    "UserRepository",
    "WithdrawalRequestRepository",
]
