"""
Threshold match service.

Secondary binary reward: once both legs of a member reach the match
threshold, the whole matched volume is paid at the commission rate and
consumed from both legs. No qualification and no capping.
"""

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.config.constants import MONEY_QUANTUM
from binary_mlm.models.enums import CommissionType
from binary_mlm.models.member import Member
from binary_mlm.repositories.commission_repository import CommissionRepository
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.services.base_service import BaseService, transaction
from binary_mlm.services.binary.results import LegacyMatchResult, MatchCheckResult
from binary_mlm.utils.exceptions import MemberNotFoundError


class ThresholdMatchService(BaseService):
    """Pays binary-match commissions when both legs cross the threshold."""

    def __init__(
        self, session: AsyncSession, config: BinaryConfig | None = None
    ) -> None:
        """
        Initialize threshold match service.

        Args:
            session: Async database session
            config: Binary plan configuration
        """
        super().__init__(session)
        self.config = config or BinaryConfig.from_settings()
        self.member_repo = MemberRepository(session)
        self.commission_repo = CommissionRepository(session)

    def is_eligible(self, member: Member) -> bool:
        """Both legs are at or above the match threshold."""
        threshold = self.config.match_threshold
        return member.left_volume >= threshold and member.right_volume >= threshold

    async def trigger(self, member: Member) -> LegacyMatchResult | None:
        """
        Pay the matched volume of member.

        Runs inside the caller's unit of work; nothing is committed here.

        Args:
            member: Member with up-to-date leg volumes

        Returns:
            Match result, or None when there is nothing to match
        """
        matched = min(member.left_volume, member.right_volume)
        if matched <= 0:
            return None

        amount = (matched * self.config.commission_rate).quantize(
            MONEY_QUANTUM, rounding=ROUND_HALF_UP
        )

        commission = await self.commission_repo.create(
            member_id=member.id,
            source_member_id=member.id,
            amount=amount,
            level=0,
            type=CommissionType.BINARY_MATCH.value,
            cycles=1,
            volume_used=matched,
        )
        await self.member_repo.add_earnings(member.id, amount)
        await self.member_repo.increment_cycle_count(member.id, 1)
        await self.member_repo.update_volumes(
            member.id,
            member.left_volume - matched,
            member.right_volume - matched,
        )

        self.logger.info(
            f"Binary match paid: member {member.id}, "
            f"matched={matched}, amount={amount}",
            extra={
                "member_id": member.id,
                "matched_volume": str(matched),
                "amount": str(amount),
                "commission_id": commission.id,
            },
        )

        return LegacyMatchResult(
            member_id=member.id,
            matched_volume=matched,
            amount=amount,
            commission_id=commission.id,
        )

    @transaction
    async def run_check(self, member_id: int) -> MatchCheckResult:
        """
        Manually run the threshold match for one member.

        Args:
            member_id: Member ID

        Returns:
            Check result with created commissions and total amount

        Raises:
            MemberNotFoundError: Member does not exist
        """
        member = await self.member_repo.get_for_update(member_id)
        if member is None:
            raise MemberNotFoundError(member_id)

        if not self.is_eligible(member):
            return MatchCheckResult(
                commissions_created=0,
                total_amount=Decimal("0"),
                message=(
                    f"Not eligible: both legs need at least "
                    f"{self.config.match_threshold} volume"
                ),
            )

        match = await self.trigger(member)
        if match is None:
            return MatchCheckResult(
                commissions_created=0,
                total_amount=Decimal("0"),
                message="Nothing to match",
            )

        return MatchCheckResult(
            commissions_created=1,
            total_amount=match.amount,
            message=f"Binary match paid: {match.amount}",
        )
