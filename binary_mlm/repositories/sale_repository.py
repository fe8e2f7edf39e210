"""
Sale repository.

Data access layer for Sale model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.models.sale import Sale
from binary_mlm.repositories.base import BaseRepository


class SaleRepository(BaseRepository[Sale]):
    """Repository for Sale entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize sale repository."""
        super().__init__(Sale, session)

    async def has_any_sale(self, member_id: int) -> bool:
        """
        Check whether member has at least one sale.

        Args:
            member_id: Member ID

        Returns:
            True if a sale exists
        """
        return await self.exists(member_id=member_id)

    async def get_by_member(
        self, member_id: int, limit: int | None = None
    ) -> list[Sale]:
        """
        Get member sales, newest first.

        Args:
            member_id: Member ID
            limit: Max number of results

        Returns:
            List of sales
        """
        stmt = (
            select(Sale)
            .where(Sale.member_id == member_id)
            .order_by(Sale.created_at.desc(), Sale.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
