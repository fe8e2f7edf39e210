"""
Commission model.

Immutable record of a binary payout.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from binary_mlm.models.base import Base
from binary_mlm.models.types import MoneyType


class Commission(Base):
    """
    Commission entity.

    Attributes:
        id: Primary key
        member_id: Beneficiary
        source_member_id: Member whose volume produced the commission
            (the beneficiary itself for binary payouts)
        amount: Paid amount
        level: Depth of the source relative to the beneficiary (0 for binary)
        type: 'binary-cycle' or 'binary-match'
        cycles: Cycles paid by this commission
        volume_used: Leg volume consumed on each side
        created_at: Payout time
    """

    __tablename__ = "commissions"
    __table_args__ = (
        Index("idx_commissions_member_created", "member_id", "created_at"),
        CheckConstraint(
            "amount >= 0", name="check_commission_amount_non_negative"
        ),
        CheckConstraint(
            "cycles >= 0", name="check_commission_cycles_non_negative"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_member_id: Mapped[int] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    cycles: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    volume_used: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, member_id={self.member_id}, "
            f"type={self.type}, amount={self.amount}, cycles={self.cycles})>"
        )
