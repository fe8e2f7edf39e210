"""
BinaryCapping model.

Per-member, per-day counter of paid binary cycles.
"""

from datetime import UTC, date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from binary_mlm.models.base import Base


class BinaryCapping(Base):
    """
    BinaryCapping entity.

    One row per (member, day), created lazily on first payout of the day.
    The weekly counter is seeded with the cycles of earlier days of the same
    week when the row is created, so it always holds the week total.

    Attributes:
        id: Primary key
        member_id: Member being capped
        capping_date: UTC day the counters belong to
        week_start: Monday of the capping_date week
        cycles_paid_today: Cycles paid on capping_date
        cycles_paid_this_week: Cycles paid since week_start, today included
        last_reset_date: Day of the last daily reset
        updated_at: Last counter change
    """

    __tablename__ = "binary_cappings"
    __table_args__ = (
        UniqueConstraint(
            "member_id", "capping_date", name="uq_binary_capping_member_date"
        ),
        CheckConstraint(
            "cycles_paid_today >= 0",
            name="check_binary_capping_today_non_negative",
        ),
        CheckConstraint(
            "cycles_paid_this_week >= 0",
            name="check_binary_capping_week_non_negative",
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
    capping_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_start: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    cycles_paid_today: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    cycles_paid_this_week: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    last_reset_date: Mapped[date] = mapped_column(Date, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<BinaryCapping(member_id={self.member_id}, "
            f"date={self.capping_date}, today={self.cycles_paid_today}, "
            f"week={self.cycles_paid_this_week})>"
        )
