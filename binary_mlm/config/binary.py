"""
Binary plan configuration.

BinaryConfig is built once (from settings or by hand) and passed explicitly
to the engines, so several plans can live side by side.
"""

from dataclasses import dataclass
from decimal import Decimal

from binary_mlm.config.settings import Settings, settings as default_settings


@dataclass(frozen=True)
class BinaryConfig:
    """
    Binary compensation plan parameters.

    Attributes:
        cycle_value: Fixed payout per cycle, used when commission_rate is 0
        daily_cycle_limit: Max cycles per member per day (0 = unlimited)
        weekly_cycle_limit: Max cycles per member per week (0 = unlimited)
        min_volume_per_leg: Leg volume consumed by one cycle
        commission_rate: Fraction of matched volume paid out
        require_direct_left: Qualification needs an active direct on the left
        require_direct_right: Qualification needs an active direct on the right
        match_threshold: Both-legs threshold of the legacy binary-match trigger
        enrollment_volume: Volume of the implicit first sale on enrollment
    """

    cycle_value: Decimal = Decimal("20")
    daily_cycle_limit: int = 4
    weekly_cycle_limit: int = 0
    min_volume_per_leg: Decimal = Decimal("1")
    commission_rate: Decimal = Decimal("0.1")
    require_direct_left: bool = True
    require_direct_right: bool = True
    match_threshold: Decimal = Decimal("100")
    enrollment_volume: Decimal = Decimal("50")

    @property
    def volume_per_cycle(self) -> Decimal:
        """Cycle divisor, 1 when misconfigured."""
        if self.min_volume_per_leg <= 0:
            return Decimal("1")
        return self.min_volume_per_leg

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "BinaryConfig":
        """
        Build plan configuration from application settings.

        Floats from the environment go through str() to keep
        Decimal values exact (0.1 stays 0.1).
        """
        s = source or default_settings
        return cls(
            cycle_value=Decimal(str(s.binary_cycle_value)),
            daily_cycle_limit=s.binary_daily_cycle_limit,
            weekly_cycle_limit=s.binary_weekly_cycle_limit,
            min_volume_per_leg=Decimal(str(s.binary_min_volume_per_leg)),
            commission_rate=Decimal(str(s.binary_commission_rate)),
            require_direct_left=s.binary_require_direct_left,
            require_direct_right=s.binary_require_direct_right,
            match_threshold=Decimal(str(s.binary_threshold)),
            enrollment_volume=Decimal(str(s.default_product_price)),
        )
