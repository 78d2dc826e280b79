"""
Integration tests for the referral registrar.

Covers:
- Affiliate creation with and without a referral code
- Code lookup rules (normalization, active affiliate, active user)
- parent_id immutability and referral loops
- Referral code issuance and collisions
"""

import re

import pytest
from sqlalchemy import func, select

from affiliate_engine.config.settings import settings
from affiliate_engine.models import Affiliate, PackageTier, Referral, ReferralStatus
from affiliate_engine.services.referral import ReferralRegistrar
from affiliate_engine.services.referral import registrar as registrar_module
from affiliate_engine.utils.exceptions import (
    InvalidReferralCodeError,
    ReferralCodeUnavailableError,
    UnknownAffiliateError,
    UnknownUserError,
)


async def count_referrals(session) -> int:
    result = await session.execute(select(func.count()).select_from(Referral))
    return result.scalar()


class TestCreateAffiliate:
    """Test ReferralRegistrar.create_affiliate."""

    async def test_without_referrer(self, session, make_user):
        """Test a root affiliate gets a code and no parent."""
        user = await make_user(name="Alice Smith")

        affiliate = await ReferralRegistrar(session).create_affiliate(
            user.id, PackageTier.SILVER
        )

        assert affiliate.user_id == user.id
        assert affiliate.package_tier == PackageTier.SILVER.value
        assert affiliate.parent_id is None
        assert re.fullmatch(r"ALI\d{4}", affiliate.referral_code)
        assert affiliate.current_balance == 0
        assert await count_referrals(session) == 0

    async def test_with_referrer(self, session, make_user, make_affiliate):
        """Test a valid code links the new affiliate and records the edge."""
        alice = await make_affiliate(PackageTier.SILVER, referral_code="ALI4821")
        user = await make_user(name="Bob")

        bob = await ReferralRegistrar(session).create_affiliate(
            user.id, "GOLD", referral_code=" ali4821 "
        )

        assert bob.parent_id == alice.id
        edge = (
            await session.execute(
                select(Referral).where(Referral.referred_user_id == user.id)
            )
        ).scalar_one()
        assert edge.affiliate_id == alice.id
        assert edge.status == ReferralStatus.ACTIVE.value
        assert edge.commission_earned == 0

    async def test_unresolved_code(self, session, make_user):
        """Test an unknown code leaves the affiliate without parent."""
        user = await make_user(name="Bob")

        bob = await ReferralRegistrar(session).create_affiliate(
            user.id, PackageTier.GOLD, referral_code="NOPE0000"
        )

        assert bob.id is not None
        assert bob.parent_id is None
        assert await count_referrals(session) == 0

    async def test_overlong_code_means_no_referrer(
        self, session, make_user, make_affiliate
    ):
        """Test a pasted string longer than any code still creates the affiliate."""
        await make_affiliate(referral_code="X" * 20)
        user = await make_user(name="Eve")

        eve = await ReferralRegistrar(session).create_affiliate(
            user.id, PackageTier.SILVER, referral_code="X" * 25
        )

        assert eve.id is not None
        assert eve.parent_id is None
        assert await count_referrals(session) == 0

    async def test_existing_affiliate_returned(self, session, make_user):
        """Test one affiliate per user."""
        user = await make_user(name="Carol")
        registrar = ReferralRegistrar(session)

        first = await registrar.create_affiliate(user.id, PackageTier.GOLD)
        second = await registrar.create_affiliate(user.id, PackageTier.PLATINUM)

        assert second.id == first.id
        assert second.package_tier == PackageTier.GOLD.value
        count = await session.execute(select(func.count()).select_from(Affiliate))
        assert count.scalar() == 1

    async def test_unknown_user(self, session):
        """Test a missing user."""
        with pytest.raises(UnknownUserError):
            await ReferralRegistrar(session).create_affiliate(
                4242, PackageTier.SILVER
            )

    async def test_empty_code_rejected(self, session, make_user):
        """Test an explicitly supplied empty code."""
        user = await make_user(name="Dan")

        with pytest.raises(InvalidReferralCodeError):
            await ReferralRegistrar(session).create_affiliate(
                user.id, PackageTier.SILVER, referral_code="   "
            )

        count = await session.execute(select(func.count()).select_from(Affiliate))
        assert count.scalar() == 0

    async def test_code_collisions_retried(
        self, session, make_user, make_affiliate, monkeypatch
    ):
        """Test a taken code is skipped in favour of a retry candidate."""
        await make_affiliate(referral_code="EVE1234")
        user = await make_user(name="Eve")
        monkeypatch.setattr(
            registrar_module.secrets, "randbelow", lambda upper: 234
        )

        eve = await ReferralRegistrar(session).create_affiliate(
            user.id, PackageTier.SILVER
        )

        assert eve.referral_code == "EVE12341"

    async def test_code_space_exhausted(
        self, session, make_user, make_affiliate, monkeypatch
    ):
        """Test ReferralCodeUnavailableError when every candidate is taken."""
        await make_affiliate(referral_code="TAKEN")
        user = await make_user(name="Frank")
        monkeypatch.setattr(
            registrar_module,
            "generate_referral_code",
            lambda seed, attempt=0, number=None: "TAKEN",
        )

        with pytest.raises(ReferralCodeUnavailableError) as exc_info:
            await ReferralRegistrar(session).create_affiliate(
                user.id, PackageTier.SILVER
            )

        assert exc_info.value.context["attempts"] == settings.referral_code_attempts


class TestLookup:
    """Test referral code lookup and validation."""

    async def test_active_affiliate(self, session, make_affiliate):
        """Test a normal code resolves case-insensitively."""
        alice = await make_affiliate(referral_code="ALI4821")

        found = await ReferralRegistrar(session).lookup_referral_code("ali4821")

        assert found.id == alice.id

    async def test_inactive_affiliate(self, session, make_affiliate):
        """Test inactive affiliates do not resolve."""
        await make_affiliate(referral_code="ALI4821", is_active=False)

        assert await ReferralRegistrar(session).lookup_referral_code("ALI4821") is None

    async def test_inactive_user(self, session, make_affiliate):
        """Test affiliates of deactivated users do not resolve."""
        await make_affiliate(referral_code="ALI4821", user_is_active=False)

        assert await ReferralRegistrar(session).lookup_referral_code("ALI4821") is None

    async def test_malformed_lookup_is_none(self, session):
        """Test lookup never raises on bad input."""
        assert await ReferralRegistrar(session).lookup_referral_code("") is None

    async def test_code_with_symbols_does_not_resolve(self, session, make_affiliate):
        """Test a dash typed into a real code is a miss, not an error."""
        await make_affiliate(referral_code="ALI4821")
        registrar = ReferralRegistrar(session)

        assert await registrar.lookup_referral_code("ali-4821") is None
        assert await registrar.validate_referral_code("ali-4821") is None

    async def test_validate_rejects_malformed(self, session):
        """Test validation surfaces malformed codes."""
        with pytest.raises(InvalidReferralCodeError):
            await ReferralRegistrar(session).validate_referral_code("")

    async def test_validate_returns_affiliate(self, session, make_affiliate):
        """Test validation of a good code."""
        alice = await make_affiliate(referral_code="ALI4821")

        found = await ReferralRegistrar(session).validate_referral_code(" Ali4821")

        assert found.id == alice.id


class TestRegisterReferral:
    """Test ReferralRegistrar.register_referral."""

    async def test_links_root_affiliate(self, session, make_affiliate):
        """Test linking an affiliate that has no parent yet."""
        alice = await make_affiliate(referral_code="ALI4821")
        bob = await make_affiliate()

        edge = await ReferralRegistrar(session).register_referral(bob.id, "ALI4821")

        assert edge.affiliate_id == alice.id
        assert edge.referred_user_id == bob.user_id
        await session.refresh(bob)
        assert bob.parent_id == alice.id

    async def test_no_code(self, session, make_affiliate):
        """Test None means no referrer."""
        bob = await make_affiliate()

        assert await ReferralRegistrar(session).register_referral(bob.id, None) is None

    async def test_parent_is_immutable(self, session, make_affiliate):
        """Test a second registration returns the original edge."""
        alice = await make_affiliate(referral_code="ALI4821")
        carol = await make_affiliate(referral_code="CAR1111")
        bob = await make_affiliate(parent=alice)

        edge = await ReferralRegistrar(session).register_referral(bob.id, "CAR1111")

        assert edge.affiliate_id == alice.id
        await session.refresh(bob)
        assert bob.parent_id == alice.id
        assert carol.id != bob.parent_id
        assert await count_referrals(session) == 1

    async def test_self_referral_ignored(self, session, make_affiliate):
        """Test an affiliate cannot refer itself."""
        alice = await make_affiliate(referral_code="ALI4821")

        assert await ReferralRegistrar(session).register_referral(
            alice.id, "ALI4821"
        ) is None
        await session.refresh(alice)
        assert alice.parent_id is None

    async def test_loop_rejected(self, session, make_affiliate):
        """Test a root cannot be linked below its own descendant."""
        alice = await make_affiliate(referral_code="ALI4821")
        bob = await make_affiliate(parent=alice, referral_code="BOB2222")
        await make_affiliate(parent=bob, referral_code="CAR3333")

        assert await ReferralRegistrar(session).register_referral(
            alice.id, "CAR3333"
        ) is None
        await session.refresh(alice)
        assert alice.parent_id is None

    async def test_unknown_affiliate(self, session):
        """Test a missing affiliate id."""
        with pytest.raises(UnknownAffiliateError):
            await ReferralRegistrar(session).register_referral(999, "ALI4821")

    async def test_code_with_symbols_means_no_referrer(self, session, make_affiliate):
        """Test an unresolvable code leaves parent_id unset."""
        await make_affiliate(referral_code="ALI4821")
        bob = await make_affiliate()

        edge = await ReferralRegistrar(session).register_referral(bob.id, "ali-4821")

        assert edge is None
        await session.refresh(bob)
        assert bob.parent_id is None
        assert await count_referrals(session) == 0

    async def test_malformed_code(self, session, make_affiliate):
        """Test an empty code is rejected."""
        bob = await make_affiliate()

        with pytest.raises(InvalidReferralCodeError):
            await ReferralRegistrar(session).register_referral(bob.id, "")
