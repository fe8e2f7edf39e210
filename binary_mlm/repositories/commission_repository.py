"""
Commission repository.

Data access layer for Commission model.
"""

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.models.commission import Commission
from binary_mlm.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Repository for Commission entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_by_member(
        self,
        member_id: int,
        commission_type: str | None = None,
    ) -> list[Commission]:
        """
        Get commissions of a beneficiary, oldest first.

        Args:
            member_id: Beneficiary ID
            commission_type: Optional type filter

        Returns:
            List of commissions
        """
        stmt = select(Commission).where(Commission.member_id == member_id)
        if commission_type:
            stmt = stmt.where(Commission.type == commission_type)
        stmt = stmt.order_by(Commission.id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_total_for_member(
        self,
        member_id: int,
        commission_type: str | None = None,
    ) -> Decimal:
        """
        Get total commission amount of a beneficiary.

        Args:
            member_id: Beneficiary ID
            commission_type: Optional type filter

        Returns:
            Sum of amounts (0 when none)
        """
        stmt = select(func.coalesce(func.sum(Commission.amount), 0)).where(
            Commission.member_id == member_id
        )
        if commission_type:
            stmt = stmt.where(Commission.type == commission_type)

        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
