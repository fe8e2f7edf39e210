"""
Tree snapshot schemas.

Immutable values: cached entries are replaced wholesale, never mutated.
"""

from dataclasses import dataclass
from decimal import Decimal

from pydantic import TypeAdapter


@dataclass(frozen=True)
class TreeNode:
    """
    One annotated member of a tree snapshot.

    Derived statistics (actives, qualification, cycles) are only computed
    for the first levels below the root; deeper nodes carry 0 / False /
    None there.
    """

    id: int
    code: str
    name: str
    phone: str | None
    parent_id: int | None
    level: int
    position: str | None
    left_child_id: int | None
    right_child_id: int | None
    left_volume: Decimal
    right_volume: Decimal
    total_earnings: Decimal
    wallet_balance: Decimal
    binary_pairs: int
    is_active: bool
    left_actives: int = 0
    right_actives: int = 0
    is_qualified: bool = False
    cycles_available: int | None = None
    cycles_paid_today: int | None = None


@dataclass(frozen=True)
class ClientTreeResponse:
    """Snapshot of the subtree under root (root included in nodes)."""

    root: TreeNode
    nodes: tuple[TreeNode, ...]
    total_nodes: int
    max_level: int


client_tree_adapter = TypeAdapter(ClientTreeResponse)
