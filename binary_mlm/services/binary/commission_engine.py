"""
Binary commission engine.

Qualification -> legs -> cycles -> caps -> atomic payout.

Cap figures read before the atomic section are only a read-only
pre-check; the capping counters are incremented once, inside the atomic
section, after the caps were re-applied on freshly locked data.
"""

import asyncio
from collections.abc import Callable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.config.constants import (
    MONEY_QUANTUM,
    REASON_DAILY_LIMIT,
    REASON_EMPTY_VOLUME,
    REASON_INSUFFICIENT_VOLUME,
    REASON_NO_ACTIVES,
    REASON_NOT_QUALIFIED,
    REASON_WEEKLY_LIMIT,
)
from binary_mlm.models.enums import CommissionType, Side
from binary_mlm.models.member import Member
from binary_mlm.repositories.binary_capping_repository import (
    BinaryCappingRepository,
)
from binary_mlm.repositories.commission_repository import CommissionRepository
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.services.base_service import BaseService, log_operation
from binary_mlm.services.binary.activity import ActivityOracle
from binary_mlm.services.binary.atomic import AtomicExecutor, get_payout_executor
from binary_mlm.services.binary.legs import LegTraversal
from binary_mlm.services.binary.results import (
    BinaryCommissionResult,
    BinaryLegs,
    BinaryQualification,
)
from binary_mlm.utils.datetime_utils import capping_day, utc_now
from binary_mlm.utils.exceptions import MemberNotFoundError


def apply_cycle_caps(
    available: int,
    paid_today: int,
    paid_this_week: int,
    daily_limit: int,
    weekly_limit: int,
) -> int:
    """
    Clamp available cycles to what the daily and weekly caps still allow.

    Args:
        available: Cycles the legs can pay
        paid_today: Cycles already paid today
        paid_this_week: Cycles already paid this week (today included)
        daily_limit: Daily cap (0 = unlimited)
        weekly_limit: Weekly cap (0 = unlimited)

    Returns:
        Grantable cycles, never negative
    """
    granted = max(available, 0)
    if daily_limit > 0:
        granted = min(granted, daily_limit - paid_today)
    if weekly_limit > 0:
        granted = min(granted, weekly_limit - paid_this_week)
    return max(granted, 0)


class BinaryCommissionEngine(BaseService):
    """
    Binary cycle commission engine.

    Pays min(left, right) volume in whole cycles of min_volume_per_leg,
    to qualified members only, within daily and weekly cycle caps.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: BinaryConfig | None = None,
        executor: AtomicExecutor | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize commission engine.

        Args:
            session: Async database session
            config: Binary plan configuration
            executor: Atomic executor of the payout section
                (process-wide executor if omitted)
            clock: Source of the current time (capping day)
        """
        super().__init__(session)
        self.config = config or BinaryConfig.from_settings()
        self.executor = executor or get_payout_executor()
        self.clock = clock

        self.member_repo = MemberRepository(session)
        self.capping_repo = BinaryCappingRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.oracle = ActivityOracle(session)
        self.legs = LegTraversal(session, self.oracle)

    async def check_qualification(
        self, member: Member, activity_cache: dict[int, bool] | None = None
    ) -> BinaryQualification:
        """
        Check that member has an active direct child on each side.

        Args:
            member: Member to check
            activity_cache: Per-request activity memo

        Returns:
            Qualification
        """
        has_left = member.left_child_id is not None and await self.oracle.is_active(
            member.left_child_id, activity_cache
        )
        has_right = member.right_child_id is not None and await self.oracle.is_active(
            member.right_child_id, activity_cache
        )
        qualified = (
            (has_left or not self.config.require_direct_left)
            and (has_right or not self.config.require_direct_right)
        )
        return BinaryQualification(
            qualified=qualified,
            has_active_left=has_left,
            has_active_right=has_right,
        )

    async def get_legs(
        self,
        member: Member,
        max_depth: int = 0,
        activity_cache: dict[int, bool] | None = None,
    ) -> BinaryLegs:
        """
        Read leg volumes and count active members of each leg.

        Args:
            member: Member whose legs are read
            max_depth: Levels counted under each direct child (0 = unbounded)
            activity_cache: Per-request activity memo

        Returns:
            Leg volumes and actives
        """
        left_actives = await self.legs.count_active_members(
            member.left_child_id, max_depth, activity_cache
        )
        right_actives = await self.legs.count_active_members(
            member.right_child_id, max_depth, activity_cache
        )
        return BinaryLegs(
            left_volume=member.left_volume,
            right_volume=member.right_volume,
            left_actives=left_actives,
            right_actives=right_actives,
        )

    def calculate_cycles(self, legs: BinaryLegs) -> int:
        """
        Whole cycles the weaker leg can pay.

        Args:
            legs: Leg volumes

        Returns:
            floor(min(left, right) / min_volume_per_leg), 0 for an empty leg
        """
        return self._cycles_for(legs.left_volume, legs.right_volume)

    def calculate_amount(self, volume_used: Decimal) -> Decimal:
        """
        Commission amount for consumed volume.

        Rate-based when a commission rate is set, otherwise a fixed
        cycle_value per cycle. Rounded half-up to cents.

        Args:
            volume_used: Volume consumed on each leg

        Returns:
            Amount to pay
        """
        if self.config.commission_rate > 0:
            amount = volume_used * self.config.commission_rate
        else:
            cycles = volume_used / self.config.volume_per_cycle
            amount = cycles * self.config.cycle_value
        return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)

    @log_operation
    async def compute_binary_commission(
        self, member_id: int, timeout: float | None = None
    ) -> BinaryCommissionResult:
        """
        Compute and pay binary cycles of a member.

        Args:
            member_id: Member ID
            timeout: Deadline for the whole computation in seconds

        Returns:
            Commission result (shortfalls carry a reason)

        Raises:
            MemberNotFoundError: Member does not exist
            PayoutAtomicityError: Payout failed and was rolled back
            TimeoutError: Deadline expired (nothing was paid)
        """
        try:
            if timeout is None:
                return await self._compute(member_id)
            async with asyncio.timeout(timeout):
                return await self._compute(member_id)
        except (TimeoutError, asyncio.CancelledError):
            await self.rollback()
            self.logger.warning(
                f"Binary commission for member {member_id} aborted",
                extra={"member_id": member_id, "timeout": timeout},
            )
            raise

    async def _compute(self, member_id: int) -> BinaryCommissionResult:
        member = await self.member_repo.get_by_id(member_id, fresh=True)
        if member is None:
            raise MemberNotFoundError(member_id)

        activity_cache: dict[int, bool] = {}

        qualification = await self.check_qualification(member, activity_cache)
        if not qualification.qualified:
            return self._shortfall(member, REASON_NOT_QUALIFIED, qualified=False)

        legs = await self.get_legs(member, activity_cache=activity_cache)
        if legs.left_actives == 0 or legs.right_actives == 0:
            return self._shortfall(member, REASON_NO_ACTIVES)

        cycles_available = self.calculate_cycles(legs)
        if cycles_available == 0:
            return self._shortfall(member, self._volume_reason(legs))

        # Read-only pre-check; counters are only touched in the atomic section
        today = capping_day(self.clock())
        paid_today = await self.capping_repo.get_paid_today(member.id, today)
        paid_week = 0
        if self.config.weekly_cycle_limit > 0:
            paid_week = await self.capping_repo.get_week_total(member.id, today)

        grantable = apply_cycle_caps(
            cycles_available,
            paid_today,
            paid_week,
            self.config.daily_cycle_limit,
            self.config.weekly_cycle_limit,
        )
        if grantable == 0:
            return self._shortfall(
                member,
                self._cap_reason(paid_today),
                cycles_available=cycles_available,
            )

        return await self.executor.run(
            self.session,
            lambda: self._pay_cycles(member.id, today, cycles_available),
        )

    async def _pay_cycles(
        self, member_id: int, day: date, cycles_available: int
    ) -> BinaryCommissionResult:
        """Atomic section: re-check on locked data, then pay."""
        member = await self.member_repo.get_for_update(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)

        capping = await self.capping_repo.get_or_create_for_date(member_id, day)
        fresh_cycles = self._cycles_for(member.left_volume, member.right_volume)
        granted = apply_cycle_caps(
            fresh_cycles,
            capping.cycles_paid_today,
            capping.cycles_paid_this_week,
            self.config.daily_cycle_limit,
            self.config.weekly_cycle_limit,
        )

        if granted == 0:
            reason = (
                self._cap_reason(capping.cycles_paid_today)
                if fresh_cycles > 0
                else REASON_INSUFFICIENT_VOLUME
            )
            self.logger.info(
                f"Binary payout for member {member_id} granted nothing "
                f"on re-check: {reason}",
                extra={"member_id": member_id, "cycles_available": cycles_available},
            )
            return self._shortfall(member, reason, cycles_available=cycles_available)

        await self.capping_repo.increment_cycles(member_id, day, granted)

        volume_used = granted * self.config.volume_per_cycle
        amount = self.calculate_amount(volume_used)

        commission = await self.commission_repo.create(
            member_id=member_id,
            source_member_id=member_id,
            amount=amount,
            level=0,
            type=CommissionType.BINARY_CYCLE.value,
            cycles=granted,
            volume_used=volume_used,
        )

        left_remaining = max(member.left_volume - volume_used, Decimal("0"))
        right_remaining = max(member.right_volume - volume_used, Decimal("0"))
        await self.member_repo.update_volumes(
            member_id, left_remaining, right_remaining
        )
        await self.member_repo.add_earnings(member_id, amount)
        await self.member_repo.increment_cycle_count(member_id, granted)

        self.logger.info(
            f"Binary cycles paid: member {member_id}, cycles={granted}, "
            f"amount={amount}",
            extra={
                "member_id": member_id,
                "cycles_available": cycles_available,
                "cycles_paid": granted,
                "volume_used": str(volume_used),
                "amount": str(amount),
                "commission_id": commission.id,
            },
        )

        return BinaryCommissionResult(
            success=True,
            qualified=True,
            cycles_available=cycles_available,
            cycles_paid=granted,
            amount=amount,
            left_volume_remaining=left_remaining,
            right_volume_remaining=right_remaining,
            commission_id=commission.id,
        )

    def _cycles_for(self, left_volume: Decimal, right_volume: Decimal) -> int:
        weaker = min(left_volume, right_volume)
        if weaker <= 0:
            return 0
        return int(weaker // self.config.volume_per_cycle)

    def _volume_reason(self, legs: BinaryLegs) -> str:
        if legs.left_volume <= 0:
            return REASON_EMPTY_VOLUME.format(side=Side.LEFT.value)
        if legs.right_volume <= 0:
            return REASON_EMPTY_VOLUME.format(side=Side.RIGHT.value)
        return REASON_INSUFFICIENT_VOLUME

    def _cap_reason(self, paid_today: int) -> str:
        limit = self.config.daily_cycle_limit
        if limit > 0 and paid_today >= limit:
            return REASON_DAILY_LIMIT
        return REASON_WEEKLY_LIMIT

    @staticmethod
    def _shortfall(
        member: Member,
        reason: str,
        qualified: bool = True,
        cycles_available: int = 0,
    ) -> BinaryCommissionResult:
        return BinaryCommissionResult(
            success=True,
            qualified=qualified,
            cycles_available=cycles_available,
            cycles_paid=0,
            amount=Decimal("0"),
            left_volume_remaining=member.left_volume,
            right_volume_remaining=member.right_volume,
            reason=reason,
        )
