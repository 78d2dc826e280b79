"""
Single source of truth for commission rates and package configuration.

Commission amounts are flat rupee values looked up by
(referrer tier, level, purchaser tier). They are NOT percentages of the
purchase price. The percentages in PACKAGES are display-only.
"""

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, NamedTuple

from affiliate_engine.models.enums import PackageTier
from affiliate_engine.utils.exceptions import RateUndefinedError


DIRECT_LEVEL = 1
INDIRECT_LEVEL = 2
COMMISSION_LEVELS = (DIRECT_LEVEL, INDIRECT_LEVEL)


class PackageConfig(NamedTuple):
    """Package catalogue entry."""

    tier: PackageTier
    display_name: str
    price: Decimal  # List price, INR
    display_direct_percent: int  # Marketing copy only, never used for payouts
    display_indirect_percent: int  # Marketing copy only, never used for payouts


PACKAGES: Mapping[PackageTier, PackageConfig] = MappingProxyType({
    PackageTier.SILVER: PackageConfig(
        tier=PackageTier.SILVER,
        display_name="Silver Package",
        price=Decimal("2950"),
        display_direct_percent=10,
        display_indirect_percent=5,
    ),
    PackageTier.GOLD: PackageConfig(
        tier=PackageTier.GOLD,
        display_name="Gold Package",
        price=Decimal("5310"),
        display_direct_percent=15,
        display_indirect_percent=8,
    ),
    PackageTier.PLATINUM: PackageConfig(
        tier=PackageTier.PLATINUM,
        display_name="Platinum Package",
        price=Decimal("8850"),
        display_direct_percent=20,
        display_indirect_percent=12,
    ),
})


# referrer tier -> level -> purchaser tier -> amount (INR)
COMMISSION_MATRIX: dict[PackageTier, dict[int, dict[PackageTier, Decimal]]] = {
    PackageTier.SILVER: {
        DIRECT_LEVEL: {
            PackageTier.SILVER: Decimal("1875"),
            PackageTier.GOLD: Decimal("2375"),
            PackageTier.PLATINUM: Decimal("2875"),
        },
        INDIRECT_LEVEL: {
            PackageTier.SILVER: Decimal("150"),
            PackageTier.GOLD: Decimal("350"),
            PackageTier.PLATINUM: Decimal("400"),
        },
    },
    PackageTier.GOLD: {
        DIRECT_LEVEL: {
            PackageTier.SILVER: Decimal("1875"),
            PackageTier.GOLD: Decimal("3375"),
            PackageTier.PLATINUM: Decimal("3875"),
        },
        INDIRECT_LEVEL: {
            PackageTier.SILVER: Decimal("200"),
            PackageTier.GOLD: Decimal("400"),
            PackageTier.PLATINUM: Decimal("600"),
        },
    },
    PackageTier.PLATINUM: {
        DIRECT_LEVEL: {
            PackageTier.SILVER: Decimal("1875"),
            PackageTier.GOLD: Decimal("3375"),
            PackageTier.PLATINUM: Decimal("5625"),
        },
        INDIRECT_LEVEL: {
            PackageTier.SILVER: Decimal("200"),
            PackageTier.GOLD: Decimal("500"),
            PackageTier.PLATINUM: Decimal("1000"),
        },
    },
}


class CommissionRateTable:
    """
    Immutable commission rate lookup.

    Built once from a nested mapping and passed into the ledger.
    Construction fails if any (referrer tier, level, purchaser tier)
    combination is missing or negative, so lookups are total.
    """

    __slots__ = ("_rates",)

    def __init__(
        self,
        matrix: Mapping[PackageTier, Mapping[int, Mapping[PackageTier, Decimal]]],
    ) -> None:
        """
        Freeze and validate the rate matrix.

        Args:
            matrix: referrer tier -> level -> purchaser tier -> amount

        Raises:
            RateUndefinedError: If the matrix is incomplete or has a
                negative amount
        """
        rates: dict[tuple[PackageTier, int, PackageTier], Decimal] = {}

        for referrer_tier in PackageTier:
            for level in COMMISSION_LEVELS:
                for purchaser_tier in PackageTier:
                    try:
                        amount = matrix[referrer_tier][level][purchaser_tier]
                    except KeyError as e:
                        raise RateUndefinedError(
                            purchaser_tier, referrer_tier, level
                        ) from e

                    amount = Decimal(amount)
                    if amount < 0:
                        raise RateUndefinedError(
                            purchaser_tier,
                            referrer_tier,
                            level,
                            reason=f"negative amount {amount}",
                        )
                    rates[(referrer_tier, level, purchaser_tier)] = amount

        object.__setattr__(self, "_rates", MappingProxyType(rates))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("CommissionRateTable is immutable")

    def rate(
        self,
        purchaser_tier: PackageTier | str,
        referrer_tier: PackageTier | str,
        level: int,
    ) -> Decimal:
        """
        Look up the commission a referrer earns for a purchase.

        Args:
            purchaser_tier: Tier bought by the purchasing affiliate
            referrer_tier: Tier of the affiliate being paid
            level: 1 for direct, 2 for indirect

        Returns:
            Flat commission amount (may be zero)

        Raises:
            RateUndefinedError: Unknown tier or level
        """
        try:
            key = (PackageTier(referrer_tier), level, PackageTier(purchaser_tier))
        except ValueError as e:
            raise RateUndefinedError(purchaser_tier, referrer_tier, level) from e

        amount = self._rates.get(key)
        if amount is None:
            raise RateUndefinedError(purchaser_tier, referrer_tier, level)
        return amount

    def items(self) -> list[tuple[tuple[PackageTier, int, PackageTier], Decimal]]:
        """All (referrer tier, level, purchaser tier) entries."""
        return list(self._rates.items())

    def __len__(self) -> int:
        return len(self._rates)


DEFAULT_RATE_TABLE = CommissionRateTable(COMMISSION_MATRIX)


def get_package(tier: PackageTier | str) -> PackageConfig:
    """
    Get package configuration by tier.

    Args:
        tier: Package tier

    Returns:
        PackageConfig for the tier

    Raises:
        ValueError: Unknown tier
    """
    return PACKAGES[PackageTier(tier)]
