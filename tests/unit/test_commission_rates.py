"""
Tests for the commission rate table.

Covers:
- Every (referrer tier, level, purchaser tier) entry is defined
- Known amounts from the package catalogue
- Unknown tiers and levels fail loudly
- Construction rejects incomplete or negative matrices
- The table cannot be mutated
"""

import copy
from decimal import Decimal

import pytest

from affiliate_engine.config.commission_rates import (
    COMMISSION_LEVELS,
    COMMISSION_MATRIX,
    DEFAULT_RATE_TABLE,
    DIRECT_LEVEL,
    INDIRECT_LEVEL,
    PACKAGES,
    CommissionRateTable,
    get_package,
)
from affiliate_engine.models.enums import PackageTier
from affiliate_engine.utils.exceptions import RateUndefinedError


class TestRateCompleteness:
    """Every combination returns a defined, non-negative amount."""

    @pytest.mark.parametrize("referrer_tier", list(PackageTier))
    @pytest.mark.parametrize("purchaser_tier", list(PackageTier))
    @pytest.mark.parametrize("level", COMMISSION_LEVELS)
    def test_rate_defined_and_non_negative(
        self, referrer_tier, purchaser_tier, level
    ):
        """Test lookup succeeds for all 18 entries."""
        amount = DEFAULT_RATE_TABLE.rate(purchaser_tier, referrer_tier, level)

        assert isinstance(amount, Decimal)
        assert amount >= 0

    def test_table_has_eighteen_entries(self):
        """Test 3 referrer tiers x 2 levels x 3 purchaser tiers."""
        assert len(DEFAULT_RATE_TABLE) == 18

    def test_direct_always_exceeds_indirect(self):
        """Test a direct referrer earns more than an indirect one."""
        for referrer_tier in PackageTier:
            for purchaser_tier in PackageTier:
                direct = DEFAULT_RATE_TABLE.rate(
                    purchaser_tier, referrer_tier, DIRECT_LEVEL
                )
                indirect = DEFAULT_RATE_TABLE.rate(
                    purchaser_tier, referrer_tier, INDIRECT_LEVEL
                )
                assert direct > indirect


class TestRateValues:
    """Spot checks of the fixed matrix."""

    def test_gold_purchase_silver_direct_referrer(self):
        """Test rate(GOLD, SILVER, 1)."""
        assert DEFAULT_RATE_TABLE.rate(
            PackageTier.GOLD, PackageTier.SILVER, DIRECT_LEVEL
        ) == Decimal("2375")

    def test_platinum_purchase_gold_direct_referrer(self):
        """Test rate(PLATINUM, GOLD, 1)."""
        assert DEFAULT_RATE_TABLE.rate(
            PackageTier.PLATINUM, PackageTier.GOLD, DIRECT_LEVEL
        ) == Decimal("3875")

    def test_platinum_purchase_silver_indirect_referrer(self):
        """Test rate(PLATINUM, SILVER, 2)."""
        assert DEFAULT_RATE_TABLE.rate(
            PackageTier.PLATINUM, PackageTier.SILVER, INDIRECT_LEVEL
        ) == Decimal("400")

    def test_platinum_pair_both_levels(self):
        """Test the highest-paying pair."""
        assert DEFAULT_RATE_TABLE.rate("PLATINUM", "PLATINUM", 1) == Decimal("5625")
        assert DEFAULT_RATE_TABLE.rate("PLATINUM", "PLATINUM", 2) == Decimal("1000")

    def test_silver_purchase_pays_same_direct_for_every_referrer(self):
        """Test SILVER purchases pay 1875 to any direct referrer."""
        for referrer_tier in PackageTier:
            assert DEFAULT_RATE_TABLE.rate(
                PackageTier.SILVER, referrer_tier, DIRECT_LEVEL
            ) == Decimal("1875")

    def test_string_tiers_accepted(self):
        """Test tiers may be passed as stored column values."""
        assert DEFAULT_RATE_TABLE.rate("GOLD", "GOLD", 2) == Decimal("400")


class TestRateUndefined:
    """Lookups outside the matrix raise instead of defaulting to zero."""

    def test_unknown_purchaser_tier(self):
        """Test unknown purchaser tier."""
        with pytest.raises(RateUndefinedError):
            DEFAULT_RATE_TABLE.rate("DIAMOND", PackageTier.GOLD, DIRECT_LEVEL)

    def test_unknown_referrer_tier(self):
        """Test unknown referrer tier."""
        with pytest.raises(RateUndefinedError):
            DEFAULT_RATE_TABLE.rate(PackageTier.GOLD, "BRONZE", DIRECT_LEVEL)

    @pytest.mark.parametrize("level", [0, 3, -1])
    def test_level_outside_two_hops(self, level):
        """Test levels other than 1 and 2."""
        with pytest.raises(RateUndefinedError) as exc_info:
            DEFAULT_RATE_TABLE.rate(PackageTier.GOLD, PackageTier.GOLD, level)

        assert exc_info.value.error_code == "RATE_UNDEFINED"

    def test_incomplete_matrix_rejected(self):
        """Test construction fails when an entry is missing."""
        matrix = copy.deepcopy(COMMISSION_MATRIX)
        del matrix[PackageTier.GOLD][INDIRECT_LEVEL][PackageTier.SILVER]

        with pytest.raises(RateUndefinedError):
            CommissionRateTable(matrix)

    def test_negative_amount_rejected(self):
        """Test construction fails on a negative amount."""
        matrix = copy.deepcopy(COMMISSION_MATRIX)
        matrix[PackageTier.SILVER][DIRECT_LEVEL][PackageTier.GOLD] = Decimal("-1")

        with pytest.raises(RateUndefinedError):
            CommissionRateTable(matrix)

    def test_zero_amount_allowed(self):
        """Test zero entries are legal."""
        matrix = copy.deepcopy(COMMISSION_MATRIX)
        matrix[PackageTier.SILVER][INDIRECT_LEVEL][PackageTier.SILVER] = Decimal("0")

        table = CommissionRateTable(matrix)

        assert table.rate("SILVER", "SILVER", INDIRECT_LEVEL) == Decimal("0")


class TestRateTableImmutability:
    """The table is a frozen value."""

    def test_cannot_set_attributes(self):
        """Test attribute assignment is refused."""
        with pytest.raises(AttributeError):
            DEFAULT_RATE_TABLE._rates = {}

    def test_source_matrix_changes_do_not_leak(self):
        """Test the table keeps its own copy of the amounts."""
        matrix = copy.deepcopy(COMMISSION_MATRIX)
        table = CommissionRateTable(matrix)

        matrix[PackageTier.GOLD][DIRECT_LEVEL][PackageTier.GOLD] = Decimal("1")

        assert table.rate("GOLD", "GOLD", DIRECT_LEVEL) == Decimal("3375")


class TestPackages:
    """Package catalogue."""

    def test_prices(self):
        """Test list prices per tier."""
        assert get_package(PackageTier.SILVER).price == Decimal("2950")
        assert get_package("GOLD").price == Decimal("5310")
        assert get_package(PackageTier.PLATINUM).price == Decimal("8850")

    def test_catalogue_covers_all_tiers(self):
        """Test every tier has a package."""
        assert set(PACKAGES) == set(PackageTier)

    def test_unknown_tier(self):
        """Test unknown tier raises ValueError."""
        with pytest.raises(ValueError):
            get_package("DIAMOND")
