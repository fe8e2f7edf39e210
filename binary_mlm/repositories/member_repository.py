"""
Member repository.

Data access layer for Member model: tree slots, leg volumes, earnings.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.models.enums import Side
from binary_mlm.models.member import Member
from binary_mlm.repositories.base import BaseRepository


class MemberRepository(BaseRepository[Member]):
    """Repository for Member entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize member repository."""
        super().__init__(Member, session)

    async def get_by_code(self, code: str) -> Member | None:
        """
        Get member by public code.

        Args:
            code: 8-digit member code

        Returns:
            Member or None
        """
        return await self.get_by(code=code)

    async def code_exists(self, code: str) -> bool:
        """Check whether a member code is already taken."""
        return await self.exists(code=code)

    async def get_for_update(self, member_id: int) -> Member | None:
        """
        Get member and lock its row until the transaction ends.

        The row is always reloaded so volumes are never served from
        a stale identity map.

        Args:
            member_id: Member ID

        Returns:
            Locked member or None
        """
        # row lock serializes payouts of the same member
        stmt = (
            select(Member)
            .where(Member.id == member_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, member_ids: list[int]) -> dict[int, Member]:
        """
        Get several members in one query.

        Args:
            member_ids: Member IDs

        Returns:
            Dict of member ID to member (missing IDs are absent)
        """
        if not member_ids:
            return {}
        stmt = (
            select(Member)
            .where(Member.id.in_(member_ids))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return {member.id: member for member in result.scalars().all()}

    async def set_child_slot(
        self, parent_id: int, side: Side, child_id: int
    ) -> bool:
        """
        Attach child to an empty slot of parent.

        Conditional update: only succeeds if the slot is still empty.

        Args:
            parent_id: Parent member ID
            side: Slot side
            child_id: Child member ID

        Returns:
            True if the slot was set, False if it was already taken
        """
        column = getattr(Member, side.child_column)
        stmt = (
            update(Member)
            .where(Member.id == parent_id, column.is_(None))
            .values({side.child_column: child_id})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def update_volumes(
        self, member_id: int, left_volume: Decimal, right_volume: Decimal
    ) -> None:
        """Set both leg volumes."""
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values(left_volume=left_volume, right_volume=right_volume)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def add_leg_volume(
        self, member_id: int, side: Side, amount: Decimal
    ) -> None:
        """
        Add volume to one leg with an atomic SQL increment.

        Args:
            member_id: Member ID
            side: Leg to credit
            amount: Volume to add
        """
        column = getattr(Member, side.volume_column)
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values({side.volume_column: column + amount})
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def update_earnings(
        self,
        member_id: int,
        total_earnings: Decimal,
        wallet_balance: Decimal,
    ) -> None:
        """Set lifetime earnings and wallet balance."""
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values(total_earnings=total_earnings, wallet_balance=wallet_balance)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def add_earnings(self, member_id: int, amount: Decimal) -> None:
        """
        Credit amount to lifetime earnings and wallet balance.

        Uses atomic SQL increments to avoid lost updates.

        Args:
            member_id: Member ID
            amount: Amount to credit
        """
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values(
                total_earnings=Member.total_earnings + amount,
                wallet_balance=Member.wallet_balance + amount,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def update_cycle_count(self, member_id: int, count: int) -> None:
        """Set lifetime paid cycles count."""
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values(binary_pairs=count)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def increment_cycle_count(self, member_id: int, cycles: int) -> None:
        """Add cycles to lifetime paid cycles count."""
        stmt = (
            update(Member)
            .where(Member.id == member_id)
            .values(binary_pairs=Member.binary_pairs + cycles)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def list_ids(self) -> list[int]:
        """
        Get all member IDs in enrollment order.

        Returns:
            List of member IDs
        """
        stmt = select(Member.id).order_by(Member.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
