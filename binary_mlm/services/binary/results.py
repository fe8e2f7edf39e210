"""
Binary plan result types.

Derived values returned by the binary services; never persisted.
"""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class BinaryLegs:
    """Leg volumes and active member counts of a member at query time."""

    left_volume: Decimal
    right_volume: Decimal
    left_actives: int
    right_actives: int

    @property
    def weaker_volume(self) -> Decimal:
        """Volume of the weaker leg."""
        return min(self.left_volume, self.right_volume)


@dataclass(frozen=True)
class BinaryQualification:
    """Whether member has an active direct member on each side."""

    qualified: bool
    has_active_left: bool
    has_active_right: bool


@dataclass
class BinaryCommissionResult:
    """
    Result of one binary cycle computation.

    Shortfalls (not qualified, empty leg, caps) are successful results
    carrying a reason; only a missing member or a failed payout raise.
    """

    success: bool
    qualified: bool
    cycles_available: int = 0
    cycles_paid: int = 0
    amount: Decimal = Decimal("0")
    left_volume_remaining: Decimal = Decimal("0")
    right_volume_remaining: Decimal = Decimal("0")
    reason: str | None = None
    commission_id: int | None = None


@dataclass
class LegacyMatchResult:
    """Result of the threshold match trigger for one member."""

    member_id: int
    matched_volume: Decimal
    amount: Decimal
    commission_id: int | None = None


@dataclass
class MatchCheckResult:
    """Result of a manual threshold match check."""

    commissions_created: int
    total_amount: Decimal
    message: str
