"""
Sale model.

Records product sales; a member with at least one sale is active.
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
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from binary_mlm.models.base import Base
from binary_mlm.models.enums import SaleStatus
from binary_mlm.models.types import MoneyType


class Sale(Base):
    """
    Sale entity.

    Attributes:
        id: Primary key
        member_id: Member who made the sale
        sponsor_id: Member's tree parent at sale time
        side: Member's position under the sponsor
        amount: Volume propagated up the tree
        quantity: Number of units sold
        status: Sale status
        note: Free-form note
        created_at: Sale time
    """

    __tablename__ = "sales"
    __table_args__ = (
        Index("idx_sales_member_created", "member_id", "created_at"),
        CheckConstraint("amount >= 0", name="check_sale_amount_non_negative"),
        CheckConstraint("quantity > 0", name="check_sale_quantity_positive"),
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
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    side: Mapped[str | None] = mapped_column(String(5), nullable=True)

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=SaleStatus.PAID.value, nullable=False
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Sale(id={self.id}, member_id={self.member_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
