"""
Transaction model.

Holds verified package purchases (written by the payment collaborator)
and withdrawal audit records (written by the withdrawal reconciler).
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from affiliate_engine.models.base import Base
from affiliate_engine.models.enums import TransactionStatus
from affiliate_engine.models.types import MoneyType


class Transaction(Base):
    """
    Transaction entity.

    Purchases: type PACKAGE_PURCHASE, status SUCCESS once verified,
    package_tier set. The commission ledger reads these and uses the id
    as its unit of idempotency.

    Withdrawal audit: type WITHDRAWAL, negative amount,
    withdrawal_request_id set.
    """

    __tablename__ = "transactions"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.PENDING.value
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    package_tier: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    withdrawal_request_id: Mapped[int | None] = mapped_column(
        ForeignKey("withdrawal_requests.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount}, status={self.status})>"
        )
