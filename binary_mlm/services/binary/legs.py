"""
Leg traversal.

Breadth-first counting of active members in a leg of the binary tree.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.services.base_service import BaseService
from binary_mlm.services.binary.activity import ActivityOracle
from binary_mlm.utils.exceptions import TRANSIENT_STORE_ERRORS


class LegTraversal(BaseService):
    """
    Iterative traversal of a leg (the subtree under one direct child).

    Walks level by level with an explicit frontier and a visited set, so
    depth never grows the call stack and every level is a cancellation
    point.
    """

    def __init__(
        self,
        session: AsyncSession,
        oracle: ActivityOracle | None = None,
    ) -> None:
        """
        Initialize leg traversal.

        Args:
            session: Async database session
            oracle: Activity oracle (created from session if omitted)
        """
        super().__init__(session)
        self.member_repo = MemberRepository(session)
        self.oracle = oracle or ActivityOracle(session)

    async def count_active_members(
        self,
        start_id: int | None,
        max_depth: int = 0,
        cache: dict[int, bool] | None = None,
    ) -> int:
        """
        Count active members of the subtree rooted at start_id.

        Args:
            start_id: Direct child heading the leg (None = empty leg)
            max_depth: Number of levels to visit, start included
                (0 = unbounded)
            cache: Per-request activity memo

        Returns:
            Number of active members found
        """
        if start_id is None:
            return 0

        count = 0
        depth = 1
        frontier = [start_id]
        seen: set[int] = set()

        while frontier:
            if max_depth > 0 and depth > max_depth:
                break

            frontier = [mid for mid in frontier if mid not in seen]
            seen.update(frontier)

            try:
                members = await self.member_repo.get_many(frontier)
            except TRANSIENT_STORE_ERRORS as e:
                self.logger.warning(
                    f"Leg traversal from {start_id} stopped at depth {depth}, "
                    f"branch counted as empty: {e}"
                )
                break

            next_frontier: list[int] = []
            for member_id in frontier:
                member = members.get(member_id)
                if member is None:
                    continue
                if await self.oracle.is_active(member_id, cache):
                    count += 1
                if member.left_child_id is not None:
                    next_frontier.append(member.left_child_id)
                if member.right_child_id is not None:
                    next_frontier.append(member.right_child_id)

            frontier = next_frontier
            depth += 1

        self.logger.debug(
            f"Leg {start_id}: {count} active members "
            f"(max_depth={max_depth}, visited={len(seen)})"
        )
        return count
