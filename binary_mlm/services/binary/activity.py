"""
Activity oracle.

A member is active once at least one sale has been recorded for them.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.repositories.sale_repository import SaleRepository
from binary_mlm.services.base_service import BaseService
from binary_mlm.utils.exceptions import TRANSIENT_STORE_ERRORS


class ActivityOracle(BaseService):
    """Answers whether a member has made at least one sale."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize activity oracle.

        Args:
            session: Async database session
        """
        super().__init__(session)
        self.sale_repo = SaleRepository(session)

    async def is_active(
        self, member_id: int, cache: dict[int, bool] | None = None
    ) -> bool:
        """
        Check whether member is active.

        A transient store failure counts the member as inactive.

        Args:
            member_id: Member ID
            cache: Per-request memo of already answered members

        Returns:
            True if member has at least one sale
        """
        if cache is not None and member_id in cache:
            return cache[member_id]

        try:
            active = await self.sale_repo.has_any_sale(member_id)
        except TRANSIENT_STORE_ERRORS as e:
            self.logger.warning(
                f"Activity lookup failed for member {member_id}, "
                f"counting as inactive: {e}"
            )
            active = False

        if cache is not None:
            cache[member_id] = active
        return active
