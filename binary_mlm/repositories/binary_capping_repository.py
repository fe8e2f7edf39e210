"""
BinaryCapping repository.

Data access layer for the per-member daily/weekly cycle counters.
"""

from datetime import date

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.models.binary_capping import BinaryCapping
from binary_mlm.repositories.base import BaseRepository
from binary_mlm.utils.datetime_utils import week_start


class BinaryCappingRepository(BaseRepository[BinaryCapping]):
    """Repository for BinaryCapping entity."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize binary capping repository."""
        super().__init__(BinaryCapping, session)

    async def get_for_date(
        self, member_id: int, day: date
    ) -> BinaryCapping | None:
        """
        Get capping record of member for a day without creating it.

        Args:
            member_id: Member ID
            day: Capping day

        Returns:
            Capping record or None
        """
        stmt = (
            select(BinaryCapping)
            .where(
                BinaryCapping.member_id == member_id,
                BinaryCapping.capping_date == day,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_paid_today(self, member_id: int, day: date) -> int:
        """
        Get cycles paid to member on day (read-only).

        Args:
            member_id: Member ID
            day: Capping day

        Returns:
            Cycles paid, 0 if no record or record not reset yet
        """
        capping = await self.get_for_date(member_id, day)
        if capping is None or capping.last_reset_date < day:
            return 0
        return capping.cycles_paid_today

    async def get_week_total(self, member_id: int, day: date) -> int:
        """
        Get cycles paid to member in the week of day, up to day included.

        Args:
            member_id: Member ID
            day: Any day of the week

        Returns:
            Sum of daily counters since Monday
        """
        stmt = select(
            func.coalesce(func.sum(BinaryCapping.cycles_paid_today), 0)
        ).where(
            BinaryCapping.member_id == member_id,
            BinaryCapping.week_start == week_start(day),
            BinaryCapping.capping_date <= day,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def get_or_create_for_date(
        self, member_id: int, day: date
    ) -> BinaryCapping:
        """
        Get capping record of member for a day, creating it if needed.

        A new record starts with zero cycles today and the week counter
        seeded from earlier days of the same week. A record whose last
        reset is older than day has its daily counter reset.

        Args:
            member_id: Member ID
            day: Capping day

        Returns:
            Capping record
        """
        capping = await self.get_for_date(member_id, day)

        if capping is None:
            earlier_this_week = await self.get_week_total(
                member_id, day
            )
            return await self.create(
                member_id=member_id,
                capping_date=day,
                week_start=week_start(day),
                cycles_paid_today=0,
                cycles_paid_this_week=earlier_this_week,
                last_reset_date=day,
            )

        if capping.last_reset_date < day:
            capping.cycles_paid_this_week -= capping.cycles_paid_today
            capping.cycles_paid_today = 0
            capping.last_reset_date = day
            await self.session.flush()

        return capping

    async def increment_cycles(
        self, member_id: int, day: date, cycles: int
    ) -> BinaryCapping:
        """
        Add paid cycles to the daily and weekly counters.

        Creates the day record first when it does not exist yet.
        Counters are incremented in SQL, not read-modify-write.

        Args:
            member_id: Member ID
            day: Capping day
            cycles: Cycles to add

        Returns:
            Reloaded capping record
        """
        capping = await self.get_or_create_for_date(member_id, day)

        stmt = (
            update(BinaryCapping)
            .where(BinaryCapping.id == capping.id)
            .values(
                cycles_paid_today=BinaryCapping.cycles_paid_today + cycles,
                cycles_paid_this_week=(
                    BinaryCapping.cycles_paid_this_week + cycles
                ),
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

        return await self.get_for_date(member_id, day)
