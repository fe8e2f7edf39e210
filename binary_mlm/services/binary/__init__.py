"""
Binary plan services.

Placement, threshold match, and the capped cycle commission engine.
"""

from binary_mlm.services.binary.activity import ActivityOracle
from binary_mlm.services.binary.atomic import (
    AtomicExecutor,
    LockAtomicExecutor,
    TransactionAtomicExecutor,
    get_payout_executor,
    select_atomic_executor,
)
from binary_mlm.services.binary.commission_engine import (
    BinaryCommissionEngine,
    apply_cycle_caps,
)
from binary_mlm.services.binary.legs import LegTraversal
from binary_mlm.services.binary.placement import BinaryPlacementEngine
from binary_mlm.services.binary.results import (
    BinaryCommissionResult,
    BinaryLegs,
    BinaryQualification,
    LegacyMatchResult,
    MatchCheckResult,
)
from binary_mlm.services.binary.threshold_match import ThresholdMatchService


__all__ = [
    "ActivityOracle",
    "AtomicExecutor",
    "BinaryCommissionEngine",
    "BinaryCommissionResult",
    "BinaryLegs",
    "BinaryPlacementEngine",
    "BinaryQualification",
    "LegTraversal",
    "LegacyMatchResult",
    "LockAtomicExecutor",
    "MatchCheckResult",
    "ThresholdMatchService",
    "TransactionAtomicExecutor",
    "apply_cycle_caps",
    "get_payout_executor",
    "select_atomic_executor",
]
