"""
Tree snapshot service.

Builds a cached, annotated view of the subtree under a member for
dashboards. Every reachable member becomes a node; leg statistics are
only computed for the first SNAPSHOT_STATS_DEPTH levels.

A node at level l counts SNAPSHOT_STATS_DEPTH - l levels under each of
its direct children, the direct child being depth 1. The root therefore
sees three levels of each leg.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.config.constants import SNAPSHOT_STATS_DEPTH
from binary_mlm.models.member import Member
from binary_mlm.repositories.binary_capping_repository import (
    BinaryCappingRepository,
)
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.services.base_service import BaseService, log_operation
from binary_mlm.services.binary.commission_engine import BinaryCommissionEngine
from binary_mlm.services.tree.cache import TreeCache, get_tree_cache
from binary_mlm.services.tree.schemas import ClientTreeResponse, TreeNode
from binary_mlm.utils.datetime_utils import capping_day, utc_now
from binary_mlm.utils.exceptions import MemberNotFoundError, TRANSIENT_STORE_ERRORS


class TreeSnapshotService(BaseService):
    """Read-side snapshot of a member's subtree."""

    def __init__(
        self,
        session: AsyncSession,
        config: BinaryConfig | None = None,
        cache: TreeCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize tree snapshot service.

        Args:
            session: Async database session
            config: Binary plan configuration (qualification rules)
            cache: Snapshot cache (process-wide cache if omitted)
            clock: Source of the current time (cycles paid today)
        """
        super().__init__(session)
        self.cache = cache if cache is not None else get_tree_cache()
        self.clock = clock
        self.member_repo = MemberRepository(session)
        self.capping_repo = BinaryCappingRepository(session)
        self.engine = BinaryCommissionEngine(session, config=config, clock=clock)

    @log_operation
    async def get_client_tree(self, root_id: int) -> ClientTreeResponse:
        """
        Get the annotated subtree of a member.

        Args:
            root_id: Root member ID

        Returns:
            Snapshot with root, all nodes (root first, breadth-first),
            node count and deepest level

        Raises:
            MemberNotFoundError: Root does not exist
        """
        cached = await self.cache.get(root_id)
        if cached is not None:
            self.logger.debug(f"Tree cache hit for root {root_id}")
            return cached

        root = await self.member_repo.get_by_id(root_id, fresh=True)
        if root is None:
            raise MemberNotFoundError(root_id)

        today = capping_day(self.clock())
        activity_cache: dict[int, bool] = {}
        nodes: list[TreeNode] = []
        seen: set[int] = {root.id}

        level = 0
        frontier: list[tuple[Member, int | None]] = [(root, None)]
        while frontier:
            child_ids: list[tuple[int, int]] = []
            for member, parent_id in frontier:
                nodes.append(
                    await self._build_node(
                        member, parent_id, level, today, activity_cache
                    )
                )
                for child_id in (member.left_child_id, member.right_child_id):
                    if child_id is not None and child_id not in seen:
                        seen.add(child_id)
                        child_ids.append((child_id, member.id))

            frontier = await self._load_level(child_ids, level + 1)
            if frontier:
                level += 1

        tree = ClientTreeResponse(
            root=nodes[0],
            nodes=tuple(nodes),
            total_nodes=len(nodes),
            max_level=level,
        )
        await self.cache.set(root_id, tree)

        self.logger.info(
            f"Tree snapshot built for root {root_id}: "
            f"{tree.total_nodes} nodes, max level {tree.max_level}",
            extra={"root_id": root_id, "total_nodes": tree.total_nodes},
        )
        return tree

    async def invalidate_cache(self, root_id: int) -> None:
        """
        Drop the cached snapshot of a root.

        Args:
            root_id: Root member ID
        """
        await self.cache.delete(root_id)

    async def _load_level(
        self, child_ids: list[tuple[int, int]], level: int
    ) -> list[tuple[Member, int | None]]:
        if not child_ids:
            return []
        try:
            members = await self.member_repo.get_many(
                [child_id for child_id, _ in child_ids]
            )
        except TRANSIENT_STORE_ERRORS as e:
            self.logger.warning(
                f"Tree snapshot truncated at level {level}: {e}"
            )
            return []
        return [
            (members[child_id], parent_id)
            for child_id, parent_id in child_ids
            if child_id in members
        ]

    async def _build_node(
        self,
        member: Member,
        parent_id: int | None,
        level: int,
        today: date,
        activity_cache: dict[int, bool],
    ) -> TreeNode:
        is_active = await self.engine.oracle.is_active(member.id, activity_cache)

        node = TreeNode(
            id=member.id,
            code=member.code,
            name=member.name,
            phone=member.phone,
            parent_id=parent_id,
            level=level,
            position=member.position,
            left_child_id=member.left_child_id,
            right_child_id=member.right_child_id,
            left_volume=member.left_volume,
            right_volume=member.right_volume,
            total_earnings=member.total_earnings,
            wallet_balance=member.wallet_balance,
            binary_pairs=member.binary_pairs,
            is_active=is_active,
        )
        if level >= SNAPSHOT_STATS_DEPTH:
            return node

        legs = await self.engine.get_legs(
            member,
            max_depth=SNAPSHOT_STATS_DEPTH - level,
            activity_cache=activity_cache,
        )
        qualification = await self.engine.check_qualification(
            member, activity_cache
        )
        paid_today = await self.capping_repo.get_paid_today(member.id, today)

        return replace(
            node,
            left_actives=legs.left_actives,
            right_actives=legs.right_actives,
            is_qualified=qualification.qualified,
            cycles_available=min(legs.left_actives, legs.right_actives),
            cycles_paid_today=paid_today,
        )
