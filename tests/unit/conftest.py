"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Binary plan configuration
- BinaryCommissionEngine instance over a mocked session
"""

from decimal import Decimal

import pytest

from binary_mlm.config.binary import BinaryConfig
from binary_mlm.services.binary.atomic import LockAtomicExecutor
from binary_mlm.services.binary.commission_engine import BinaryCommissionEngine


@pytest.fixture
def config():
    """
    Default binary plan configuration.

    Returns:
        BinaryConfig: v=1, rate=0.1, daily limit 4, no weekly limit
    """
    return BinaryConfig(
        min_volume_per_leg=Decimal("1"),
        commission_rate=Decimal("0.1"),
        daily_cycle_limit=4,
        weekly_cycle_limit=0,
    )


@pytest.fixture
def engine(mock_session, config):
    """
    Create BinaryCommissionEngine with mocked session.

    Args:
        mock_session: Mocked database session
        config: Binary plan configuration

    Returns:
        BinaryCommissionEngine: Engine for pure calculation tests
    """
    return BinaryCommissionEngine(
        mock_session, config=config, executor=LockAtomicExecutor()
    )
