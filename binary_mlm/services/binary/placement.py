"""
Binary placement engine.

Places new members in the binary tree and propagates sale volume up
the sponsor chain.
"""

from collections import deque
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.config.constants import MEMBER_CODE_MAX_ATTEMPTS
from binary_mlm.models.enums import SaleStatus, Side
from binary_mlm.models.member import Member
from binary_mlm.models.sale import Sale
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.repositories.sale_repository import SaleRepository
from binary_mlm.services.base_service import BaseService, transaction
from binary_mlm.services.binary.threshold_match import ThresholdMatchService
from binary_mlm.services.tree.cache import TreeCache
from binary_mlm.utils.exceptions import (
    BinaryMLMError,
    InvalidPositionError,
    MemberNotFoundError,
    SlotOccupiedError,
    SponsorFullError,
)
from binary_mlm.utils.member_code import generate_member_code


class BinaryPlacementEngine(BaseService):
    """
    Binary placement engine.

    Two placement modes:
    - explicit: caller picks 'left' or 'right' under the sponsor
    - automatic: breadth-first search from the sponsor, left before right,
      first free slot wins

    Every placement and sale walks the sponsor chain to the root, crediting
    the side the walk came from and firing the threshold match on ancestors
    whose both legs reached the threshold.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: BinaryConfig | None = None,
        tree_cache: TreeCache | None = None,
    ) -> None:
        """
        Initialize placement engine.

        Args:
            session: Async database session
            config: Binary plan configuration
            tree_cache: Snapshot cache to invalidate on tree changes
        """
        super().__init__(session)
        self.config = config or BinaryConfig.from_settings()
        self.tree_cache = tree_cache
        self.member_repo = MemberRepository(session)
        self.sale_repo = SaleRepository(session)
        self.match_service = ThresholdMatchService(session, self.config)

    async def place_member(
        self,
        name: str,
        sponsor_id: int | None = None,
        position: str | Side | None = None,
        phone: str | None = None,
    ) -> Member:
        """
        Enroll a new member in the tree.

        Args:
            name: Member name
            sponsor_id: Sponsor ID (None creates an unattached root)
            position: 'left' / 'right', or None for automatic placement
            phone: Optional phone number

        Returns:
            Created member

        Raises:
            MemberNotFoundError: Sponsor does not exist
            InvalidPositionError: Position is not 'left' or 'right'
            SponsorFullError: Sponsor already has both children
            SlotOccupiedError: Requested slot is taken (or was taken
                concurrently)
        """
        member, touched = await self._place(name, sponsor_id, position, phone)
        await self._invalidate(touched)
        return member

    async def record_sale(
        self,
        member_id: int,
        amount: Decimal | None = None,
        quantity: int = 1,
        note: str | None = None,
    ) -> Sale:
        """
        Record a sale and propagate its volume up the tree.

        Args:
            member_id: Member who made the sale
            amount: Sale volume (default: enrollment volume per unit)
            quantity: Units sold
            note: Optional note

        Returns:
            Created sale

        Raises:
            MemberNotFoundError: Member does not exist
        """
        sale, touched = await self._record_sale(member_id, amount, quantity, note)
        await self._invalidate(touched)
        return sale

    @transaction
    async def _place(
        self,
        name: str,
        sponsor_id: int | None,
        position: str | Side | None,
        phone: str | None,
    ) -> tuple[Member, list[int]]:
        code = await self._generate_unique_code()

        if sponsor_id is None:
            member = await self.member_repo.create(code=code, name=name, phone=phone)
            self.logger.info(
                f"Root member placed: {member.id} ({code})",
                extra={"member_id": member.id, "code": code},
            )
            return member, [member.id]

        sponsor = await self.member_repo.get_by_id(sponsor_id, fresh=True)
        if sponsor is None:
            raise MemberNotFoundError(sponsor_id, role="Sponsor")

        if position is None:
            parent, side = await self._find_open_slot(sponsor)
        else:
            side = self._parse_position(position)
            if sponsor.is_full:
                raise SponsorFullError(
                    f"Sponsor {sponsor.id} already has both a left and a right child"
                )
            if sponsor.child_id(side) is not None:
                raise SlotOccupiedError(
                    f"The {side.value} slot of sponsor {sponsor.id} is already occupied"
                )
            parent = sponsor

        try:
            member = await self.member_repo.create(
                code=code,
                name=name,
                phone=phone,
                sponsor_id=parent.id,
                position=side.value,
            )
        except IntegrityError as e:
            raise SlotOccupiedError(
                f"The {side.value} slot of member {parent.id} is already occupied"
            ) from e

        if not await self.member_repo.set_child_slot(parent.id, side, member.id):
            self.logger.warning(
                f"Lost race for {side.value} slot of member {parent.id}, "
                f"placement rolled back"
            )
            raise SlotOccupiedError(
                f"The {side.value} slot of member {parent.id} is already occupied"
            )

        self.logger.info(
            f"Member {member.id} ({code}) placed {side.value} of {parent.id}",
            extra={
                "member_id": member.id,
                "parent_id": parent.id,
                "sponsor_id": sponsor_id,
                "side": side.value,
                "automatic": position is None,
            },
        )

        touched = await self._propagate_volume_safely(
            parent.id, side, self.config.enrollment_volume
        )
        return member, [member.id, *touched]

    @transaction
    async def _record_sale(
        self,
        member_id: int,
        amount: Decimal | None,
        quantity: int,
        note: str | None,
    ) -> tuple[Sale, list[int]]:
        member = await self.member_repo.get_by_id(member_id, fresh=True)
        if member is None:
            raise MemberNotFoundError(member_id)

        if amount is None:
            amount = self.config.enrollment_volume * quantity

        sale = await self.sale_repo.create(
            member_id=member.id,
            sponsor_id=member.sponsor_id,
            side=member.position,
            amount=amount,
            quantity=quantity,
            status=SaleStatus.PAID.value,
            note=note,
        )
        self.logger.info(
            f"Sale recorded: member {member.id}, amount={amount}",
            extra={"member_id": member.id, "sale_id": sale.id, "amount": str(amount)},
        )

        touched = [member.id]
        if member.sponsor_id is not None and member.position is not None:
            touched += await self._propagate_volume_safely(
                member.sponsor_id, Side(member.position), amount
            )
        return sale, touched

    async def _propagate_volume_safely(
        self, start_id: int, side: Side, amount: Decimal
    ) -> list[int]:
        """
        Propagate volume inside a savepoint.

        A failed walk is logged and discarded; the placement or sale
        itself is kept.
        """
        try:
            async with self.session.begin_nested():
                return await self.propagate_volume(start_id, side, amount)
        except SQLAlchemyError as e:
            self.logger.error(
                "Volume propagation from {} failed, "
                "placement kept without volume: {}",
                start_id,
                e,
                extra={"start_id": start_id, "side": side.value},
            )
            return []

    async def propagate_volume(
        self, start_id: int, side: Side, amount: Decimal
    ) -> list[int]:
        """
        Credit amount to every ancestor from start_id up to the root.

        At each ancestor the credited leg is the side of the child the
        walk came from.

        Args:
            start_id: First ancestor (the placement parent)
            side: Side of the new volume under start_id
            amount: Volume to add

        Returns:
            IDs of the credited ancestors, bottom-up
        """
        visited: list[int] = []
        seen: set[int] = set()
        current_id: int | None = start_id
        current_side = side

        while current_id is not None and current_id not in seen:
            seen.add(current_id)

            await self.member_repo.add_leg_volume(current_id, current_side, amount)
            ancestor = await self.member_repo.get_by_id(current_id, fresh=True)
            if ancestor is None:
                break
            visited.append(ancestor.id)

            if self.match_service.is_eligible(ancestor):
                await self.match_service.trigger(ancestor)

            if ancestor.sponsor_id is None or ancestor.position is None:
                break
            current_side = Side(ancestor.position)
            current_id = ancestor.sponsor_id

        self.logger.debug(
            f"Volume {amount} propagated through {len(visited)} ancestors"
        )
        return visited

    async def _find_open_slot(self, sponsor: Member) -> tuple[Member, Side]:
        """Breadth-first search for the first free slot, left preferred."""
        queue: deque[Member] = deque([sponsor])
        seen: set[int] = set()

        while queue:
            node = queue.popleft()
            if node.id in seen:
                continue
            seen.add(node.id)

            if node.left_child_id is None:
                return node, Side.LEFT
            if node.right_child_id is None:
                return node, Side.RIGHT

            children = await self.member_repo.get_many(
                [node.left_child_id, node.right_child_id]
            )
            for child_id in (node.left_child_id, node.right_child_id):
                child = children.get(child_id)
                if child is not None:
                    queue.append(child)

        raise SponsorFullError(
            f"No free slot found under sponsor {sponsor.id}"
        )

    @staticmethod
    def _parse_position(position: str | Side) -> Side:
        try:
            return Side(str(position).lower())
        except ValueError:
            raise InvalidPositionError(
                f"Invalid position '{position}': expected 'left' or 'right'"
            ) from None

    async def _generate_unique_code(self) -> str:
        for _ in range(MEMBER_CODE_MAX_ATTEMPTS):
            code = generate_member_code()
            if not await self.member_repo.code_exists(code):
                return code
        raise BinaryMLMError(
            f"Could not generate a unique member code "
            f"after {MEMBER_CODE_MAX_ATTEMPTS} attempts"
        )

    async def _invalidate(self, member_ids: list[int]) -> None:
        if self.tree_cache is None:
            return
        for member_id in member_ids:
            await self.tree_cache.delete(member_id)
