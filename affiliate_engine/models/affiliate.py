"""
Affiliate model.

A user's participation record in the referral program.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate_engine.models.base import Base
from affiliate_engine.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate_engine.models.user import User


class Affiliate(Base):
    """
    Affiliate entity.

    One per user, created on the first package purchase. The referral
    tree is a forest linked through parent_id; parent_id and
    package_tier are written once and never changed.

    Balance fields are only mutated by the commission ledger (credits)
    and the withdrawal reconciler (debits), always as relative SQL
    deltas.

    Attributes:
        id: Primary key
        user_id: Owning user (1:1)
        referral_code: Unique, immutable code shared with referees
        parent_id: Referring affiliate (weak reference)
        package_tier: SILVER / GOLD / PLATINUM
        is_active: Whether the affiliate can still refer others
        total_direct_earnings: Sum of level 1 commissions credited
        total_indirect_earnings: Sum of level 2 commissions credited
        current_balance: Credited commissions minus debited withdrawals
        total_withdrawn: Sum of debited withdrawals
    """

    __tablename__ = "affiliates"
    __table_args__ = (
        CheckConstraint(
            "current_balance >= 0", name="check_affiliate_balance_non_negative"
        ),
        CheckConstraint(
            "total_withdrawn >= 0",
            name="check_affiliate_total_withdrawn_non_negative",
        ),
        CheckConstraint(
            "total_direct_earnings >= 0",
            name="check_affiliate_direct_earnings_non_negative",
        ),
        CheckConstraint(
            "total_indirect_earnings >= 0",
            name="check_affiliate_indirect_earnings_non_negative",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )

    # Tree edge
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("affiliates.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    package_tier: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="SILVER, GOLD or PLATINUM"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    # Balances
    total_direct_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_indirect_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    current_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_withdrawn: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="affiliate",
    )
    parent: Mapped[Optional["Affiliate"]] = relationship(
        "Affiliate",
        remote_side=[id],
        back_populates="children",
        foreign_keys=[parent_id],
    )
    children: Mapped[list["Affiliate"]] = relationship(
        "Affiliate",
        back_populates="parent",
        foreign_keys=[parent_id],
    )

    @property
    def total_earnings(self) -> Decimal:
        """Direct plus indirect earnings."""
        return self.total_direct_earnings + self.total_indirect_earnings

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Affiliate(id={self.id}, user_id={self.user_id}, "
            f"code={self.referral_code}, tier={self.package_tier})>"
        )
