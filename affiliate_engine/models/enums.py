"""
Enumerations shared by models and services.

Values are stored as plain strings in the database.
"""

from enum import Enum


class PackageTier(str, Enum):
    """Package tier purchased by an affiliate."""

    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


class CommissionType(str, Enum):
    """Commission type by referral level."""

    DIRECT_REFERRAL = "DIRECT_REFERRAL"
    INDIRECT_REFERRAL = "INDIRECT_REFERRAL"


class CommissionStatus(str, Enum):
    """Commission lifecycle: PENDING -> APPROVED -> PAID, or CANCELLED."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class ReferralStatus(str, Enum):
    """Referral edge status."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class WithdrawalStatus(str, Enum):
    """Withdrawal request status."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class TransactionType(str, Enum):
    """Transaction record type."""

    PACKAGE_PURCHASE = "PACKAGE_PURCHASE"
    WITHDRAWAL = "WITHDRAWAL"


class TransactionStatus(str, Enum):
    """Transaction record status."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# Withdrawal statuses that move money out of current_balance
DEBIT_WITHDRAWAL_STATUSES = frozenset({
    WithdrawalStatus.APPROVED.value,
    WithdrawalStatus.COMPLETED.value,
})

# Commission statuses that have been credited to current_balance
CREDITED_COMMISSION_STATUSES = frozenset({
    CommissionStatus.APPROVED.value,
    CommissionStatus.PAID.value,
})
