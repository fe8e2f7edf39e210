"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from binary_mlm.models.base import Base
from binary_mlm.models.binary_capping import BinaryCapping
from binary_mlm.models.commission import Commission
from binary_mlm.models.enums import CommissionType, SaleStatus, Side
from binary_mlm.models.member import Member
from binary_mlm.models.sale import Sale


__all__ = [
    "Base",
    "BinaryCapping",
    "Commission",
    "CommissionType",
    "Member",
    "Sale",
    "SaleStatus",
    "Side",
]
