"""
Hierarchy resolution module.

Walks the affiliate tree through parent_id. Upward traversal is capped
at two hops (parent and grandparent), and so is the downline view.
"""

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate_engine.models.affiliate import Affiliate
from affiliate_engine.repositories.affiliate_repository import AffiliateRepository
from affiliate_engine.services.referral.config import REFERRAL_DEPTH
from affiliate_engine.utils.exceptions import UnknownAffiliateError


@dataclass
class Upline:
    """Direct and indirect referrer of an affiliate (either may be None)."""

    parent: Affiliate | None = None
    grandparent: Affiliate | None = None


@dataclass
class AffiliateHierarchy:
    """Two levels up and two levels down from an affiliate."""

    affiliate: Affiliate
    parent: Affiliate | None = None
    grandparent: Affiliate | None = None
    children: list[Affiliate] = field(default_factory=list)
    grandchildren: list[Affiliate] = field(default_factory=list)


class HierarchyResolver:
    """Resolves the referral chain around an affiliate."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize hierarchy resolver."""
        self.session = session
        self.affiliate_repo = AffiliateRepository(session)

    async def get_affiliate(self, affiliate_id: int) -> Affiliate:
        """
        Get affiliate or fail.

        Raises:
            UnknownAffiliateError: If affiliate_id does not exist
        """
        affiliate = await self.affiliate_repo.get_by_id(affiliate_id)
        if affiliate is None:
            raise UnknownAffiliateError(affiliate_id)
        return affiliate

    async def resolve(self, affiliate_id: int) -> Upline:
        """
        Resolve parent and grandparent of an affiliate.

        Follows parent_id at most twice. An affiliate without a parent
        yields an empty Upline, which is not an error.

        Args:
            affiliate_id: Affiliate ID

        Returns:
            Upline(parent, grandparent)

        Raises:
            UnknownAffiliateError: If affiliate_id does not exist
        """
        affiliate = await self.get_affiliate(affiliate_id)
        return await self.resolve_for(affiliate)

    async def resolve_for(self, affiliate: Affiliate) -> Upline:
        """Resolve the upline of an already loaded affiliate."""
        ancestors = await self.get_ancestors(affiliate)
        upline = Upline(*ancestors)

        if upline.parent is not None:
            logger.debug(
                "Upline resolved",
                extra={
                    "affiliate_id": affiliate.id,
                    "parent_id": upline.parent.id,
                    "grandparent_id": (
                        upline.grandparent.id if upline.grandparent else None
                    ),
                },
            )
        return upline

    async def get_ancestors(
        self, affiliate: Affiliate, depth: int = REFERRAL_DEPTH
    ) -> list[Affiliate]:
        """
        Follow parent_id upward, nearest first.

        Stops after depth hops, at a root, at a dangling parent_id or
        when the walk comes back to the starting affiliate.

        Args:
            affiliate: Starting affiliate
            depth: Maximum number of hops

        Returns:
            Ancestors ordered parent, grandparent, ...
        """
        ancestors: list[Affiliate] = []
        current = affiliate

        while len(ancestors) < depth and current.parent_id is not None:
            if current.parent_id == affiliate.id:
                break

            ancestor = await self.affiliate_repo.get_by_id(current.parent_id)
            if ancestor is None:
                # Dangling weak reference; the chain ends here
                logger.warning(
                    "Affiliate parent not found",
                    extra={
                        "affiliate_id": current.id,
                        "parent_id": current.parent_id,
                    },
                )
                break

            ancestors.append(ancestor)
            current = ancestor

        return ancestors

    async def get_hierarchy(self, affiliate_id: int) -> AffiliateHierarchy:
        """
        Get the two-level upline and downline of an affiliate.

        Args:
            affiliate_id: Affiliate ID

        Returns:
            AffiliateHierarchy

        Raises:
            UnknownAffiliateError: If affiliate_id does not exist
        """
        affiliate = await self.get_affiliate(affiliate_id)
        upline = await self.resolve_for(affiliate)

        levels: list[list[Affiliate]] = []
        parent_ids = [affiliate.id]
        for _ in range(REFERRAL_DEPTH):
            level = await self.affiliate_repo.get_children(parent_ids)
            levels.append(level)
            parent_ids = [child.id for child in level]
        children, grandchildren = levels

        return AffiliateHierarchy(
            affiliate=affiliate,
            parent=upline.parent,
            grandparent=upline.grandparent,
            children=children,
            grandchildren=grandchildren,
        )
