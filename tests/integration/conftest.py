"""
Shared fixtures for integration tests.

Integration tests run the services against a real SQLite database file
(aiosqlite), one fresh database per test.
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.database import create_engine, create_session_maker, init_models
from binary_mlm.models.member import Member
from binary_mlm.repositories.member_repository import MemberRepository
from binary_mlm.services.binary.atomic import LockAtomicExecutor
from binary_mlm.services.binary.commission_engine import BinaryCommissionEngine
from binary_mlm.services.binary.placement import BinaryPlacementEngine


class FrozenClock:
    """Settable UTC clock for capping-day tests."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def database_url(tmp_path):
    """SQLite database file private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'binary_mlm.db'}"


@pytest_asyncio.fixture
async def db_engine(database_url):
    """Async engine with all tables created."""
    engine = create_engine(database_url, echo=False)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    """Session factory bound to the test database."""
    return create_session_maker(db_engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Session for the test body."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def config():
    """
    Binary plan configuration for integration tests.

    The threshold match is pushed out of reach so cycle engine tests see
    only their own payouts.
    """
    return BinaryConfig(
        min_volume_per_leg=Decimal("1"),
        commission_rate=Decimal("0.1"),
        daily_cycle_limit=4,
        weekly_cycle_limit=0,
        match_threshold=Decimal("1000000"),
        enrollment_volume=Decimal("50"),
    )


@pytest.fixture
def executor():
    """Lock discipline (SQLite has no row locks)."""
    return LockAtomicExecutor()


@pytest.fixture
def clock():
    """Clock frozen on Monday 2026-10-12 10:00 UTC."""
    return FrozenClock(datetime(2026, 10, 12, 10, 0, tzinfo=UTC))


@pytest.fixture
def placement(session, config):
    """Placement engine over the test session."""
    return BinaryPlacementEngine(session, config=config)


@pytest.fixture
def commission_engine(session, config, executor, clock):
    """Commission engine over the test session."""
    return BinaryCommissionEngine(
        session, config=config, executor=executor, clock=clock
    )


@pytest.fixture
def member_repo(session):
    """Member repository over the test session."""
    return MemberRepository(session)


@pytest_asyncio.fixture
async def qualified_root(session, placement, member_repo):
    """
    Root with an active left and an active right direct member.

    Returns:
        Member: Root reloaded from the database
    """
    root = await placement.place_member("Root")
    left = await placement.place_member("Left", sponsor_id=root.id, position="left")
    right = await placement.place_member("Right", sponsor_id=root.id, position="right")
    await placement.record_sale(left.id)
    await placement.record_sale(right.id)
    return await member_repo.get_by_id(root.id, fresh=True)


@pytest.fixture
def set_volumes(session, member_repo):
    """Overwrite leg volumes of a member and commit."""

    async def _set_volumes(member_id: int, left: str, right: str) -> Member:
        await member_repo.update_volumes(member_id, Decimal(left), Decimal(right))
        await session.commit()
        return await member_repo.get_by_id(member_id, fresh=True)

    return _set_volumes
