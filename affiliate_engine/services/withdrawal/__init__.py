"""
Withdrawal services package.

- request_handler: Intake validation of withdrawal requests
- reconciler: Admin decisions and balance debits
"""

from affiliate_engine.services.withdrawal.reconciler import WithdrawalReconciler
from affiliate_engine.services.withdrawal.request_handler import (
    WithdrawalRequestHandler,
)


__all__ = [
    "WithdrawalReconciler",
    "WithdrawalRequestHandler",
]
