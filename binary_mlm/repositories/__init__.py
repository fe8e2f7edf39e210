"""
Repositories.

Data access layer over the SQLAlchemy models.
"""

from binary_mlm.repositories.base import BaseRepository
from binary_mlm.repositories.binary_capping_repository import (
    BinaryCappingRepository,
)
from binary_mlm.repositories.commission_repository import CommissionRepository
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.repositories.sale_repository import SaleRepository


__all__ = [
    "BaseRepository",
    "BinaryCappingRepository",
    "CommissionRepository",
    "MemberRepository",
    "SaleRepository",
]
