"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class Side(StrEnum):
    """Side of a binary tree node."""

    LEFT = "left"
    RIGHT = "right"

    @property
    def child_column(self) -> str:
        """Name of the parent's child pointer column for this side."""
        return f"{self.value}_child_id"

    @property
    def volume_column(self) -> str:
        """Name of the leg volume column for this side."""
        return f"{self.value}_volume"


class CommissionType(StrEnum):
    """Commission kind."""

    BINARY_CYCLE = "binary-cycle"  # Capped cycle payout
    BINARY_MATCH = "binary-match"  # Legacy threshold trigger


class SaleStatus(StrEnum):
    """Sale status."""

    PAID = "paid"
    PENDING = "pending"
    PARTIAL = "partial"
    CANCELLED = "cancelled"
