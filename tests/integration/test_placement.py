"""
Integration tests for BinaryPlacementEngine.

Tests cover:
- Root, explicit and automatic (spillover) placement
- Constraint violations surfaced as placement errors
- Upward volume propagation on the correct side
- Sale recording and member activity
- Threshold match trigger
- Snapshot cache invalidation on tree changes
"""

from dataclasses import replace
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from binary_mlm.models.enums import CommissionType
from binary_mlm.repositories.commission_repository import CommissionRepository
from binary_mlm.repositories.sale_repository import SaleRepository
from binary_mlm.services.binary.placement import BinaryPlacementEngine
from binary_mlm.services.binary.threshold_match import ThresholdMatchService
from binary_mlm.services.tree.cache import MemoryTreeCache
from binary_mlm.utils.exceptions import (
    InvalidPositionError,
    MemberNotFoundError,
    SlotOccupiedError,
    SponsorFullError,
)
from binary_mlm.utils.member_code import is_valid_member_code


class TestPlacement:
    """Test member placement."""

    @pytest.mark.asyncio
    async def test_root_without_sponsor(self, placement):
        """Root has no sponsor, no position and zero volumes."""
        root = await placement.place_member("Root", phone="+243000000")

        assert root.sponsor_id is None
        assert root.position is None
        assert root.left_volume == 0
        assert root.right_volume == 0
        assert is_valid_member_code(root.code)

    @pytest.mark.asyncio
    async def test_explicit_positions(self, placement, member_repo):
        """Explicit left/right placement sets both sides of the link."""
        root = await placement.place_member("Root")
        left = await placement.place_member("L", sponsor_id=root.id, position="left")
        right = await placement.place_member("R", sponsor_id=root.id, position="RIGHT")

        root = await member_repo.get_by_id(root.id, fresh=True)
        assert (left.sponsor_id, left.position) == (root.id, "left")
        assert (right.sponsor_id, right.position) == (root.id, "right")
        assert root.left_child_id == left.id
        assert root.right_child_id == right.id

    @pytest.mark.asyncio
    async def test_missing_sponsor(self, placement):
        """Unknown sponsor is a not-found error."""
        with pytest.raises(MemberNotFoundError):
            await placement.place_member("Orphan", sponsor_id=999)

    @pytest.mark.asyncio
    async def test_invalid_position(self, placement):
        """Position must be left or right."""
        root = await placement.place_member("Root")
        with pytest.raises(InvalidPositionError):
            await placement.place_member("X", sponsor_id=root.id, position="middle")

    @pytest.mark.asyncio
    async def test_occupied_slot(self, placement, member_repo):
        """Requested side already taken is rejected, nothing is created."""
        root = await placement.place_member("Root")
        await placement.place_member("L", sponsor_id=root.id, position="left")

        with pytest.raises(SlotOccupiedError):
            await placement.place_member("L2", sponsor_id=root.id, position="left")

        assert len(await member_repo.list_ids()) == 2

    @pytest.mark.asyncio
    async def test_full_sponsor(self, placement):
        """Sponsor with both children rejects explicit placement."""
        root = await placement.place_member("Root")
        await placement.place_member("L", sponsor_id=root.id, position="left")
        await placement.place_member("R", sponsor_id=root.id, position="right")

        with pytest.raises(SponsorFullError):
            await placement.place_member("X", sponsor_id=root.id, position="left")

    @pytest.mark.asyncio
    async def test_automatic_placement_is_breadth_first(self, placement):
        """Automatic mode fills level by level, left before right."""
        root = await placement.place_member("Root")
        placed = [
            await placement.place_member(f"M{i}", sponsor_id=root.id)
            for i in range(6)
        ]

        m0, m1, m2, m3, m4, m5 = placed
        assert (m0.sponsor_id, m0.position) == (root.id, "left")
        assert (m1.sponsor_id, m1.position) == (root.id, "right")
        assert (m2.sponsor_id, m2.position) == (m0.id, "left")
        assert (m3.sponsor_id, m3.position) == (m0.id, "right")
        assert (m4.sponsor_id, m4.position) == (m1.id, "left")
        assert (m5.sponsor_id, m5.position) == (m1.id, "right")

    @pytest.mark.asyncio
    async def test_automatic_placement_under_descendant_sponsor(self, placement):
        """Spillover search starts at the given sponsor, not the root."""
        root = await placement.place_member("Root")
        left = await placement.place_member("L", sponsor_id=root.id)
        await placement.place_member("R", sponsor_id=root.id)

        member = await placement.place_member("X", sponsor_id=left.id)

        assert (member.sponsor_id, member.position) == (left.id, "left")

    @pytest.mark.asyncio
    async def test_tree_invariant_after_many_placements(
        self, placement, member_repo
    ):
        """Every member has at most one child per side and one sponsor slot."""
        root = await placement.place_member("Root")
        for i in range(12):
            sponsor_ids = await member_repo.list_ids()
            await placement.place_member(
                f"M{i}", sponsor_id=sponsor_ids[i % len(sponsor_ids)]
            )

        members = await member_repo.get_many(await member_repo.list_ids())
        slots = set()
        for member in members.values():
            if member.id == root.id:
                assert member.sponsor_id is None
                continue
            assert member.sponsor_id is not None
            assert member.position in ("left", "right")
            slot = (member.sponsor_id, member.position)
            assert slot not in slots
            slots.add(slot)

            parent = members[member.sponsor_id]
            assert parent.child_id(member.position) == member.id


class TestVolumePropagation:
    """Test upward volume propagation."""

    @pytest.mark.asyncio
    async def test_enrollment_volume_reaches_every_ancestor(
        self, placement, member_repo
    ):
        """Each ancestor is credited on the side the new member hangs from."""
        root = await placement.place_member("Root")
        a = await placement.place_member("A", sponsor_id=root.id, position="left")
        b = await placement.place_member("B", sponsor_id=a.id, position="right")
        await placement.place_member("C", sponsor_id=b.id, position="left")

        root = await member_repo.get_by_id(root.id, fresh=True)
        a = await member_repo.get_by_id(a.id, fresh=True)
        b = await member_repo.get_by_id(b.id, fresh=True)

        # A, B and C all sit in the root's left leg
        assert root.left_volume == Decimal("150")
        assert root.right_volume == 0
        # B and C sit in A's right leg
        assert a.left_volume == 0
        assert a.right_volume == Decimal("100")
        # C sits in B's left leg
        assert b.left_volume == Decimal("50")
        assert b.right_volume == 0

    @pytest.mark.asyncio
    async def test_sale_propagates_and_activates(self, session, placement, member_repo):
        """A sale makes the seller active and credits its ancestors."""
        root = await placement.place_member("Root")
        right = await placement.place_member("R", sponsor_id=root.id, position="right")

        sale = await placement.record_sale(right.id, amount=Decimal("30"), note="starter kit")

        root = await member_repo.get_by_id(root.id, fresh=True)
        assert root.right_volume == Decimal("80")
        assert sale.side == "right"
        assert sale.sponsor_id == root.id
        assert await SaleRepository(session).has_any_sale(right.id)
        assert not await SaleRepository(session).has_any_sale(root.id)

    @pytest.mark.asyncio
    async def test_sale_default_amount_per_unit(self, placement, member_repo):
        """Without an amount, each unit is worth the enrollment volume."""
        root = await placement.place_member("Root")
        left = await placement.place_member("L", sponsor_id=root.id, position="left")

        sale = await placement.record_sale(left.id, quantity=2)

        root = await member_repo.get_by_id(root.id, fresh=True)
        assert sale.amount == Decimal("100")
        assert root.left_volume == Decimal("150")

    @pytest.mark.asyncio
    async def test_sale_of_root_changes_no_volume(self, placement, member_repo):
        """A root has no ancestors to credit."""
        root = await placement.place_member("Root")
        await placement.record_sale(root.id)

        root = await member_repo.get_by_id(root.id, fresh=True)
        assert root.left_volume == 0
        assert root.right_volume == 0

    @pytest.mark.asyncio
    async def test_failed_walk_keeps_placement(self, placement, member_repo):
        """A store error during the walk is logged, the member stays placed."""
        root_id = (await placement.place_member("Root")).id
        placement.member_repo.add_leg_volume = AsyncMock(
            side_effect=OperationalError(
                "UPDATE members SET {left_volume}", None, Exception("disk {io}")
            )
        )

        child = await placement.place_member("L", sponsor_id=root_id, position="left")

        root = await member_repo.get_by_id(root_id, fresh=True)
        assert root.left_child_id == child.id
        assert root.left_volume == 0
        assert len(await member_repo.list_ids()) == 2

    @pytest.mark.asyncio
    async def test_sale_for_missing_member(self, placement):
        """Unknown member is a not-found error."""
        with pytest.raises(MemberNotFoundError):
            await placement.record_sale(12345)


class TestThresholdMatch:
    """Test the threshold match trigger."""

    @pytest.mark.asyncio
    async def test_match_fires_when_both_legs_reach_threshold(
        self, session, config, member_repo
    ):
        """Matched volume is paid at the rate and consumed from both legs."""
        placement = BinaryPlacementEngine(
            session, config=replace(config, match_threshold=Decimal("100"))
        )
        root = await placement.place_member("Root")
        left = await placement.place_member("L", sponsor_id=root.id, position="left")
        right = await placement.place_member("R", sponsor_id=root.id, position="right")
        await placement.record_sale(left.id)
        await placement.record_sale(right.id)

        root = await member_repo.get_by_id(root.id, fresh=True)
        commissions = await CommissionRepository(session).get_by_member(root.id)

        assert len(commissions) == 1
        assert commissions[0].type == CommissionType.BINARY_MATCH
        assert commissions[0].amount == Decimal("10.00")
        assert root.left_volume == 0
        assert root.right_volume == 0
        assert root.total_earnings == Decimal("10.00")
        assert root.wallet_balance == Decimal("10.00")
        assert root.binary_pairs == 1

    @pytest.mark.asyncio
    async def test_no_match_below_threshold(self, session, config, member_repo):
        """One leg below the threshold pays nothing."""
        placement = BinaryPlacementEngine(
            session, config=replace(config, match_threshold=Decimal("100"))
        )
        root = await placement.place_member("Root")
        left = await placement.place_member("L", sponsor_id=root.id, position="left")
        await placement.place_member("R", sponsor_id=root.id, position="right")
        await placement.record_sale(left.id)

        assert await CommissionRepository(session).get_by_member(root.id) == []

    @pytest.mark.asyncio
    async def test_manual_check(
        self, session, config, placement, member_repo, set_volumes
    ):
        """Manual check reports ineligibility, then pays once eligible."""
        service = ThresholdMatchService(
            session, config=replace(config, match_threshold=Decimal("100"))
        )
        root = await placement.place_member("Root")

        result = await service.run_check(root.id)
        assert result.commissions_created == 0
        assert result.total_amount == 0
        assert "Not eligible" in result.message

        await set_volumes(root.id, "150", "120")
        result = await service.run_check(root.id)
        assert result.commissions_created == 1
        assert result.total_amount == Decimal("12.00")

        root = await member_repo.get_by_id(root.id, fresh=True)
        assert root.total_earnings == Decimal("12.00")
        assert root.left_volume == Decimal("30")
        assert root.right_volume == 0

    @pytest.mark.asyncio
    async def test_manual_check_missing_member(self, session, config):
        """Unknown member is a not-found error."""
        with pytest.raises(MemberNotFoundError):
            await ThresholdMatchService(session, config).run_check(404)


class TestCacheInvalidation:
    """Test snapshot cache invalidation on tree changes."""

    @pytest.mark.asyncio
    async def test_placement_invalidates_ancestors(self, session, config, member_repo):
        """Cached snapshots of every credited ancestor are dropped."""
        cache = MemoryTreeCache()
        placement = BinaryPlacementEngine(session, config=config, tree_cache=cache)
        root = await placement.place_member("Root")
        child = await placement.place_member("C", sponsor_id=root.id)
        stale = object()
        await cache.set(root.id, stale)
        await cache.set(child.id, stale)

        await placement.place_member("G", sponsor_id=child.id)

        assert await cache.get(root.id) is None
        assert await cache.get(child.id) is None
