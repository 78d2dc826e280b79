"""
Affiliate commission and referral hierarchy engine.

Resolves two-level referral chains, credits fixed-rate commissions
idempotently per purchase and reconciles withdrawals against balances.
"""

__version__ = "0.1.0"
