"""
Referral registration module.

Creates affiliates, issues referral codes and records the
referrer -> referee edge. parent_id is written at most once.
"""

import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.config.settings import settings
from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.models.enums import PackageTier, ReferralStatus
from affiliate_engine.models.referral import Referral
from affiliate_engine.models.user import User
from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.repositories.referral_repository import ReferralRepository
from affiliate_engine.repositories.user_repository import UserRepository
from affiliate_engine.services.base_service import BaseService, transaction
from affiliate_engine.services.referral.config import (
    NON_ALPHANUMERIC,
    REFERRAL_CODE_MAX_LENGTH,
    REFERRAL_CODE_PAD_CHAR,
    REFERRAL_CODE_PREFIX_LENGTH,
)
from affiliate_engine.utils.exceptions import (
    InvalidReferralCodeError,
    ReferralCodeUnavailableError,
    UnknownAffiliateError,
    UnknownUserError,
)


def normalize_referral_code(code: str) -> str:
    """
    Normalize a human-entered referral code.

    Args:
        code: Code as typed by the user

    Returns:
        Trimmed, upper-cased code

    Raises:
        InvalidReferralCodeError: Nothing left after trimming
    """
    normalized = (code or "").strip().upper()
    if not normalized:
        raise InvalidReferralCodeError(code)
    return normalized


def could_be_issued(code: str) -> bool:
    """Check whether a normalized code has a shape this engine issues."""
    return (
        len(code) <= REFERRAL_CODE_MAX_LENGTH
        and NON_ALPHANUMERIC.search(code) is None
    )


def generate_referral_code(
    seed: str, attempt: int = 0, number: int | None = None
) -> str:
    """
    Build a referral code candidate.

    Format: first 3 alphanumerics of seed (upper-cased, padded with X),
    a 4-digit number, then the attempt number when retrying.

    Args:
        seed: User's name or email
        attempt: Retry counter (0 for the first try)
        number: Fixed 4-digit number (random when omitted)

    Returns:
        Candidate code, e.g. "ALI4821" or "ALI48213"
    """
    prefix = NON_ALPHANUMERIC.sub("", seed or "").upper()
    prefix = prefix[:REFERRAL_CODE_PREFIX_LENGTH].ljust(
        REFERRAL_CODE_PREFIX_LENGTH, REFERRAL_CODE_PAD_CHAR
    )
    if number is None:
        number = 1000 + secrets.randbelow(9000)
    suffix = str(attempt) if attempt > 0 else ""
    return f"{prefix}{number}{suffix}"


class ReferralRegistrar(BaseService):
    """
    Registers affiliates and their referrers.

    The only writer of Referral rows and of Affiliate.parent_id.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral registrar."""
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.affiliate_repo = AffiliateRepository(session)
        self.referral_repo = ReferralRepository(session)

    async def lookup_referral_code(self, code: str) -> Affiliate | None:
        """
        Resolve a referral code to an active affiliate.

        Both the affiliate and its owning user must be active.

        Args:
            code: Referral code (normalized or not)

        Returns:
            Affiliate or None if the code does not resolve
        """
        try:
            normalized = normalize_referral_code(code)
        except InvalidReferralCodeError:
            return None
        return await self._find_referrer(normalized)

    async def validate_referral_code(self, code: str) -> Affiliate | None:
        """
        Check a referral code entered on a sign-up form.

        Raises:
            InvalidReferralCodeError: Code is empty after trimming
        """
        normalized = normalize_referral_code(code)
        return await self._find_referrer(normalized)

    @transaction
    async def register_referral(
        self, new_affiliate_id: int, referral_code: str | None
    ) -> Referral | None:
        """
        Link an affiliate to the owner of a referral code.

        Args:
            new_affiliate_id: Affiliate being registered
            referral_code: Code supplied at sign-up, None for no referrer

        Returns:
            The Referral edge, or None if there is no referrer

        Raises:
            UnknownAffiliateError: new_affiliate_id does not exist
            InvalidReferralCodeError: Code is empty after trimming
        """
        affiliate = await self.affiliate_repo.get_by_id(new_affiliate_id)
        if affiliate is None:
            raise UnknownAffiliateError(new_affiliate_id)

        return await self._link_referrer(affiliate, referral_code)

    @transaction
    async def create_affiliate(
        self,
        user_id: int,
        package_tier: PackageTier | str,
        referral_code: str | None = None,
    ) -> Affiliate:
        """
        Create the affiliate record for a user's first package purchase.

        Returns the existing affiliate unchanged if the user already has
        one.

        Args:
            user_id: Owning user ID
            package_tier: Tier of the purchased package
            referral_code: Code supplied at sign-up, if any

        Returns:
            Affiliate

        Raises:
            UnknownUserError: user_id does not exist
            InvalidReferralCodeError: Code is empty after trimming
            ReferralCodeUnavailableError: No unique code could be issued
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UnknownUserError(user_id)

        existing = await self.affiliate_repo.get_by_user_id(user_id)
        if existing is not None:
            self.logger.info(
                "Affiliate already exists",
                extra={"user_id": user_id, "affiliate_id": existing.id},
            )
            return existing

        tier = PackageTier(package_tier)
        code = await self._issue_referral_code(user)

        affiliate = await self.affiliate_repo.create(
            user_id=user.id,
            referral_code=code,
            package_tier=tier.value,
        )

        if referral_code is not None:
            await self._link_referrer(affiliate, referral_code)

        self.logger.info(
            "Affiliate created",
            extra={
                "user_id": user.id,
                "affiliate_id": affiliate.id,
                "package_tier": tier.value,
                "parent_id": affiliate.parent_id,
            },
        )
        return affiliate

    async def _find_referrer(self, code: str) -> Affiliate | None:
        """Resolve a normalized code; codes we never issue do not resolve."""
        if not could_be_issued(code):
            return None
        return await self.affiliate_repo.get_active_by_referral_code(code)

    async def _issue_referral_code(self, user: User) -> str:
        """Find an unused referral code for user."""
        seed = user.name or user.email
        attempts = settings.referral_code_attempts

        for attempt in range(attempts):
            code = generate_referral_code(seed, attempt)
            if not await self.affiliate_repo.code_exists(code):
                return code

        raise ReferralCodeUnavailableError(user.id, attempts)

    async def _link_referrer(
        self, affiliate: Affiliate, referral_code: str | None
    ) -> Referral | None:
        """Set parent_id and create the edge inside the current unit of work."""
        if affiliate.parent_id is not None:
            # Immutable once set
            return await self.referral_repo.get_by_referred_user(
                affiliate.user_id
            )

        if referral_code is None:
            return None

        code = normalize_referral_code(referral_code)
        referrer = await self._find_referrer(code)
        if referrer is None:
            self.logger.info(
                "Referral code did not resolve",
                extra={"affiliate_id": affiliate.id},
            )
            return None

        if await self._is_in_upline(referrer, affiliate.id):
            self.logger.warning(
                "Referral loop rejected",
                extra={"affiliate_id": affiliate.id, "referrer_id": referrer.id},
            )
            return None

        linked = await self.affiliate_repo.set_parent(affiliate.id, referrer.id)
        await self.session.refresh(affiliate)

        edge = await self.referral_repo.get_by_referred_user(affiliate.user_id)
        if not linked or edge is not None:
            return edge

        referral = await self.referral_repo.create(
            affiliate_id=referrer.id,
            referred_user_id=affiliate.user_id,
            status=ReferralStatus.ACTIVE.value,
        )

        self.logger.info(
            "Referral registered",
            extra={
                "affiliate_id": affiliate.id,
                "referrer_id": referrer.id,
                "referral_id": referral.id,
            },
        )
        return referral

    async def _is_in_upline(self, start: Affiliate, affiliate_id: int) -> bool:
        """Check whether affiliate_id is start or one of start's ancestors."""
        visited: set[int] = set()
        current: Affiliate | None = start

        while current is not None and current.id not in visited:
            if current.id == affiliate_id:
                return True
            visited.add(current.id)
            if current.parent_id is None:
                return False
            current = await self.affiliate_repo.get_by_id(current.parent_id)

        return current is not None
