"""
Referral model.

Edge record: an affiliate referred a user.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate_engine.models.base import Base
from affiliate_engine.models.enums import ReferralStatus
from affiliate_engine.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate_engine.models.affiliate import Affiliate
    from affiliate_engine.models.user import User


class Referral(Base):
    """
    Referral entity.

    Created once at registration time by the referral registrar and
    never deleted. Only commission_earned changes afterwards: it
    accumulates the direct commissions the referrer earned from this
    referred user.
    """

    __tablename__ = "referrals"

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    affiliate_id: Mapped[int] = mapped_column(
        ForeignKey("affiliates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    referred_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    commission_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReferralStatus.ACTIVE.value
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    # Relationships
    affiliate: Mapped["Affiliate"] = relationship("Affiliate")
    referred_user: Mapped["User"] = relationship("User")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, affiliate_id={self.affiliate_id}, "
            f"referred_user_id={self.referred_user_id})>"
        )
