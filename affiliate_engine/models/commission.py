"""
Commission model.

Records a commission earned by an affiliate from a purchase made
one or two levels below them.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate_engine.models.base import Base
from affiliate_engine.models.enums import CommissionStatus
from affiliate_engine.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate_engine.models.affiliate import Affiliate


class Commission(Base):
    """
    Commission entity.

    Created only by the commission ledger. The unique constraint on
    (transaction_id, level) is what makes purchase processing
    idempotent: a second attempt for the same purchase cannot insert
    another row for the same level.

    A zero-rate level produces no row at all, so amount is always
    positive.

    Attributes:
        id: Primary key
        affiliate_id: Beneficiary affiliate
        from_affiliate_id: Purchasing affiliate that triggered the payout
        transaction_id: Source purchase transaction
        level: 1 (direct) or 2 (indirect)
        commission_type: DIRECT_REFERRAL or INDIRECT_REFERRAL
        amount: Flat commission amount (INR)
        status: PENDING, APPROVED, PAID or CANCELLED
    """

    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint(
            "transaction_id", "level", name="uq_commission_transaction_level"
        ),
        CheckConstraint("amount > 0", name="check_commission_amount_positive"),
        CheckConstraint("level IN (1, 2)", name="check_commission_level"),
        Index("idx_commission_affiliate_level", "affiliate_id", "level"),
        Index("idx_commission_affiliate_status", "affiliate_id", "status"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"), nullable=False
    )
    from_affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    level: Mapped[int] = mapped_column(Integer, nullable=False)
    commission_type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CommissionStatus.PENDING.value,
        comment="PENDING, APPROVED, PAID, CANCELLED",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    affiliate: Mapped["Affiliate"] = relationship(
        "Affiliate", foreign_keys=[affiliate_id]
    )
    from_affiliate: Mapped["Affiliate"] = relationship(
        "Affiliate", foreign_keys=[from_affiliate_id]
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, affiliate_id={self.affiliate_id}, "
            f"transaction_id={self.transaction_id}, level={self.level}, "
            f"amount={self.amount}, status={self.status})>"
        )
