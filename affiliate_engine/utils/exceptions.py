"""
Exception handling utilities.

Defines the engine's typed errors and helpers that categorize
database exceptions by handling strategy.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError


class AffiliateEngineError(Exception):
    """Base class for all engine errors."""

    error_code = "AFFILIATE_ENGINE_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.context = context

    def to_log_extra(self) -> dict[str, Any]:
        """Structured fields for log records."""
        return {"error_code": self.error_code, **self.context}


class UnknownAffiliateError(AffiliateEngineError):
    """Referenced affiliate does not exist."""

    error_code = "UNKNOWN_AFFILIATE"

    def __init__(self, affiliate_id: int | None = None, **context: Any) -> None:
        lookup = {"affiliate_id": affiliate_id} if affiliate_id is not None else context
        described = ", ".join(f"{k}={v}" for k, v in lookup.items())
        super().__init__(
            f"Affiliate not found ({described})",
            affiliate_id=affiliate_id,
            **context,
        )
        self.affiliate_id = affiliate_id


class UnknownUserError(AffiliateEngineError):
    """Referenced user does not exist."""

    error_code = "UNKNOWN_USER"

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User not found: {user_id}", user_id=user_id)
        self.user_id = user_id


class UnknownWithdrawalError(AffiliateEngineError):
    """Referenced withdrawal request does not exist."""

    error_code = "UNKNOWN_WITHDRAWAL"

    def __init__(self, withdrawal_id: int) -> None:
        super().__init__(
            f"Withdrawal request not found: {withdrawal_id}",
            withdrawal_id=withdrawal_id,
        )
        self.withdrawal_id = withdrawal_id


class UnknownTransactionError(AffiliateEngineError):
    """Purchase transaction referenced by a commission does not exist."""

    error_code = "UNKNOWN_TRANSACTION"

    def __init__(self, transaction_id: int) -> None:
        super().__init__(
            f"Transaction not found: {transaction_id}",
            transaction_id=transaction_id,
        )
        self.transaction_id = transaction_id


class InvalidReferralCodeError(AffiliateEngineError):
    """Supplied referral code is malformed."""

    error_code = "INVALID_REFERRAL_CODE"

    def __init__(self, code: str | None) -> None:
        super().__init__("Invalid referral code format", code=code)
        self.code = code


class RateUndefinedError(AffiliateEngineError):
    """Commission matrix has no entry for the combination."""

    error_code = "RATE_UNDEFINED"

    def __init__(
        self,
        purchaser_tier: Any,
        referrer_tier: Any,
        level: Any,
        reason: str = "no matrix entry",
    ) -> None:
        super().__init__(
            f"Commission rate undefined for purchaser={purchaser_tier} "
            f"referrer={referrer_tier} level={level}: {reason}",
            purchaser_tier=str(purchaser_tier),
            referrer_tier=str(referrer_tier),
            level=level,
        )


class AlreadyProcessedError(AffiliateEngineError):
    """Entity is no longer in a state that allows the transition."""

    error_code = "ALREADY_PROCESSED"

    def __init__(self, entity: str, entity_id: int, status: str) -> None:
        super().__init__(
            f"{entity} {entity_id} already processed (status: {status})",
            entity=entity,
            entity_id=entity_id,
            status=status,
        )
        self.status = status


class InsufficientBalanceError(AffiliateEngineError):
    """Debit exceeds the affiliate's current balance."""

    error_code = "INSUFFICIENT_BALANCE"

    def __init__(
        self, affiliate_id: int, requested: Decimal, available: Decimal | None = None
    ) -> None:
        super().__init__(
            "Insufficient balance",
            affiliate_id=affiliate_id,
            requested=str(requested),
            available=str(available) if available is not None else None,
        )
        self.requested = requested
        self.available = available


class ConcurrencyConflictError(AffiliateEngineError):
    """Unit of work kept aborting due to contention."""

    error_code = "CONCURRENCY_CONFLICT"

    def __init__(self, operation: str, attempts: int) -> None:
        super().__init__(
            f"{operation} aborted after {attempts} attempts due to contention",
            operation=operation,
            attempts=attempts,
        )


class InvalidWithdrawalStatusError(AffiliateEngineError):
    """Target withdrawal status is not a valid transition."""

    error_code = "INVALID_WITHDRAWAL_STATUS"

    def __init__(self, status: Any) -> None:
        super().__init__(
            f"Invalid withdrawal status: {status}", status=str(status)
        )


class InvalidWithdrawalAmountError(AffiliateEngineError):
    """Withdrawal amount violates intake rules."""

    error_code = "INVALID_WITHDRAWAL_AMOUNT"

    def __init__(self, message: str, amount: Decimal) -> None:
        super().__init__(message, amount=str(amount))


class PendingWithdrawalExistsError(AffiliateEngineError):
    """User already has an open withdrawal request."""

    error_code = "PENDING_WITHDRAWAL_EXISTS"

    def __init__(self, user_id: int, withdrawal_id: int) -> None:
        super().__init__(
            "You already have a pending withdrawal request",
            user_id=user_id,
            withdrawal_id=withdrawal_id,
        )


class ReferralCodeUnavailableError(AffiliateEngineError):
    """No unused referral code found within the attempt budget."""

    error_code = "REFERRAL_CODE_UNAVAILABLE"

    def __init__(self, user_id: int, attempts: int) -> None:
        super().__init__(
            f"Could not issue a unique referral code after {attempts} attempts",
            user_id=user_id,
            attempts=attempts,
        )


# SQLSTATE codes meaning "retry the whole transaction"
# 40001 serialization_failure, 40P01 deadlock_detected, 55P03 lock_not_available
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})

# Contention errors without a SQLSTATE (e.g. SQLite "database is locked")
RETRYABLE = (
    OperationalError,
)


def _sqlstate(exc: BaseException) -> str | None:
    """Extract SQLSTATE from a DBAPI error or its driver cause."""
    orig = getattr(exc, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(
            candidate, "pgcode", None
        )
        if code:
            return str(code)
    return None


def is_concurrency_conflict(exc: BaseException) -> bool:
    """
    Check if exception means the transaction lost a race.

    Args:
        exc: Exception to check

    Returns:
        True if the unit of work should be retried
    """
    if isinstance(exc, IntegrityError):
        return False
    if isinstance(exc, DBAPIError) and _sqlstate(exc) in RETRYABLE_SQLSTATES:
        return True
    return isinstance(exc, RETRYABLE)


def is_unique_violation(exc: BaseException) -> bool:
    """
    Check if exception is a unique constraint violation.

    Args:
        exc: Exception to check

    Returns:
        True if a unique index rejected the write
    """
    if not isinstance(exc, IntegrityError):
        return False
    code = _sqlstate(exc)
    if code is not None:
        return code == "23505"
    return "unique" in str(exc.orig).lower()


def is_foreign_key_violation(exc: BaseException) -> bool:
    """
    Check if exception is a foreign key violation.

    Args:
        exc: Exception to check

    Returns:
        True if a referenced row does not exist
    """
    if not isinstance(exc, IntegrityError):
        return False
    code = _sqlstate(exc)
    if code is not None:
        return code == "23503"
    return "foreign key" in str(exc.orig).lower()
