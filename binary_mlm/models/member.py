"""
Member model.

Represents a member occupying one node of the binary tree.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from binary_mlm.models.base import Base
from binary_mlm.models.types import MoneyType


class Member(Base):
    """
    Member entity.

    A node of the binary tree:
    - Placed once under a sponsor on the left or right side
    - Holds at most one left and one right child
    - Accumulates leg volumes from downline sales
    - Consumes leg volume when cycles are paid

    Attributes:
        id: Primary key
        code: Public 8-digit member code
        name: Display name
        phone: Optional phone number
        sponsor_id: Tree parent (None for a root)
        position: Side under the sponsor ('left' / 'right')
        left_child_id: Direct child on the left side
        right_child_id: Direct child on the right side
        left_volume: Accumulated left leg volume
        right_volume: Accumulated right leg volume
        total_earnings: Lifetime commissions
        wallet_balance: Withdrawable balance
        binary_pairs: Lifetime paid cycles count
        joined_at: Enrollment time
    """

    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint(
            "sponsor_id", "position", name="uq_member_sponsor_position"
        ),
        CheckConstraint(
            "position IN ('left', 'right')",
            name="check_member_position_valid",
        ),
        CheckConstraint(
            "left_volume >= 0", name="check_member_left_volume_non_negative"
        ),
        CheckConstraint(
            "right_volume >= 0", name="check_member_right_volume_non_negative"
        ),
        CheckConstraint(
            "total_earnings >= 0",
            name="check_member_total_earnings_non_negative",
        ),
        CheckConstraint(
            "wallet_balance >= 0",
            name="check_member_wallet_balance_non_negative",
        ),
        CheckConstraint(
            "binary_pairs >= 0", name="check_member_binary_pairs_non_negative"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity
    code: Mapped[str] = mapped_column(
        String(8), unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Tree placement
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    position: Mapped[str | None] = mapped_column(String(5), nullable=True)
    left_child_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    right_child_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )

    # Leg volumes
    left_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    right_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Earnings
    total_earnings: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    wallet_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    binary_pairs: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # Timestamps
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def child_id(self, side: str) -> int | None:
        """Get direct child id on the given side."""
        return self.left_child_id if side == "left" else self.right_child_id

    def leg_volume(self, side: str) -> Decimal:
        """Get accumulated volume of the given leg."""
        return self.left_volume if side == "left" else self.right_volume

    @property
    def is_full(self) -> bool:
        """Both child slots are occupied."""
        return self.left_child_id is not None and self.right_child_id is not None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Member(id={self.id}, code={self.code!r}, "
            f"sponsor_id={self.sponsor_id}, position={self.position}, "
            f"left_volume={self.left_volume}, right_volume={self.right_volume})>"
        )
